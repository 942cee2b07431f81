import plotly.graph_objects as go
import polars as pl

BAR_COLOR = "#347ABF"
# bars at or above this percentage get no value label
LABEL_BELOW_PCT = 10


def biotype_bar(breakdown: pl.DataFrame, height=300) -> go.Figure:
    """Bar chart of gene biotype percentages (input from `biotype_breakdown`)."""
    labels = breakdown["label"].to_list()
    pct = breakdown["pct"].to_list()
    total = int(breakdown["n"].sum()) if breakdown.height else 0

    fig = go.Figure(
        go.Bar(
            x=labels,
            y=pct,
            marker_color=BAR_COLOR,
            text=[f"{p:g}" if p < LABEL_BELOW_PCT else "" for p in pct],
            textposition="outside",
            customdata=breakdown["n"].to_list(),
            hovertemplate="%{x}<br>%{y}% (n=%{customdata})<extra></extra>",
        )
    )
    fig.update_layout(
        title=f"Gene Types (n = {total})",
        yaxis_title="Percentage (%)",
        xaxis_title="",
        template="simple_white",
        showlegend=False,
        height=height,
        margin=dict(l=10, r=10, t=50, b=10),
    )
    fig.update_xaxes(tickangle=-45, categoryorder="array", categoryarray=labels)
    return fig
