import logging
from pathlib import Path

import streamlit as st

from nadepot import NADepotError, __version__
from nadepot.analysis import compute
from nadepot.catalog import Catalog
from nadepot.config import BrowserConfig, load_config
from nadepot.export import archive_name, build_archive
from nadepot.plots import biotype_bar
from nadepot.selection import (
    Selection,
    cell_line_options,
    condition_options,
    species_options,
    tissue_options,
)

# ------------------ Page & Config ------------------
st.set_page_config(page_title="NADepot", layout="wide")

# anchor paths to this script
APP_DIR = Path(__file__).parent.resolve()
IMG_PATH = APP_DIR / "img" / "NAD_ill.jpg"

try:
    CFG = load_config(base_dir=APP_DIR)
except NADepotError as e:
    st.error(str(e))
    st.stop()

logging.basicConfig(level=CFG.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("nadepot.app")


@st.cache_resource
def get_catalog(cfg: BrowserConfig) -> Catalog:
    # Loaded once per process and config; read-only afterwards
    return Catalog.load(cfg)


try:
    catalog = get_catalog(CFG)
except NADepotError as e:
    logger.error("Startup failed: %s", e)
    st.error(f"{e}\n\nCheck `data_dir` in config.yaml, or run `nadepot-check`.")
    st.stop()

# ------------------ Sidebar ------------------
PAGES = ["Home", "NAD-RNA", "Downloads", "Contact"]

with st.sidebar:
    st.title("NADepot")
    page = st.radio("Menu", PAGES, key="page", label_visibility="collapsed")
    st.caption(f"v{__version__}")

# ------------------ Home ------------------
if page == "Home":
    st.header("Introduction")
    st.markdown(
        "Welcome to NADepot, a storage for NAD-RNA sequencing datasets. "
        "In eukaryotes, 5',5'-triphosphate-linked 7-methylguanosine (m7G) is the predominant "
        "5'-end cap structure of RNA (m7Gppp-RNA or m7G-RNA), essential for RNA stability, "
        "polyadenylation, splicing, localization, and translation. Recently, NAD, the adenine "
        "nucleotide containing metabolite, emerged as a non-canonical initiating nucleotide (NCIN) "
        "incorporating at the 5'-terminus of RNA to result in NAD-capped RNAs (NAD-RNA). "
        "NAD capping may define a yet-to-be understood epitranscriptomic mechanism."
    )
    if IMG_PATH.exists():
        left, mid, right = st.columns([1, 2, 1])
        mid.image(str(IMG_PATH))

    stats = catalog.stats()
    c1, c2, c3 = st.columns(3)
    c1.metric("Datasets", stats.n_datasets)
    c2.metric("Species", stats.n_species)
    c3.metric("Tissue Types/Cell Lines", stats.n_tissue_or_cell_line)

    with st.expander("Release Notes", expanded=True):
        st.markdown(
            "Version 1.0.0 (Released on April 1, 2023):\n"
            "- Added NAD-RNA information box.\n"
            "- Added database statistics value boxes.\n"
            "- Added release notes message box."
        )

# ------------------ NAD-RNA ------------------
elif page == "NAD-RNA":
    st.header("NAD-RNA")
    left, right = st.columns([1, 2])

    with left:
        with st.container(border=True):
            # Each select is re-populated from the values chosen above it
            species = st.selectbox("Select Species:", species_options(catalog), key="species")
            tissue = st.selectbox("Select Tissue:", tissue_options(catalog, species), key="tissue")
            cell_line = st.selectbox(
                "Select Cell Line:", cell_line_options(catalog, species, tissue), key="cell_line"
            )
            condition = st.selectbox(
                "Select Condition:",
                condition_options(catalog, species, tissue, cell_line),
                key="condition",
            )
            if st.button("Submit", type="primary", disabled=condition is None):
                st.session_state["submitted"] = Selection(species, tissue, cell_line, condition)

    submitted = st.session_state.get("submitted")
    # Nothing is shown until the first submit; recomputed on every rerun
    result = compute(catalog, submitted, digits=CFG.round_digits) if submitted else None

    with left:
        with st.container(border=True):
            st.subheader("Gene Types")
            if result is not None and result.breakdown.height:
                st.plotly_chart(biotype_bar(result.breakdown), width="stretch")

    with right:
        if result is not None:
            st.caption(f"{result.data_id}: {' / '.join(result.selection)} (n={result.n_genes})")
            st.dataframe(result.table, hide_index=True, width="stretch")
        elif submitted:
            st.info("No dataset matches the submitted selection.")

    with st.expander("Help - NAD-RNA", expanded=False):
        st.markdown(
            "**Figure**: percentage of genes per biotype in the selected dataset; "
            "bars under 10% are labelled with their value.\n\n"
            "**Table**: one row per gene with its annotation. `logCPM`, `log2_fold_change` "
            f"and `FDR` are rounded to {CFG.round_digits} decimals. Click a header to sort."
        )

# ------------------ Downloads ------------------
elif page == "Downloads":
    st.header("Downloads")

    st.subheader("Available Datasets")
    event = st.dataframe(
        catalog.display_table(),
        hide_index=True,
        width="stretch",
        on_select="rerun",
        selection_mode="multi-row",
        key="datasets_table",
    )
    selected_rows = list(event.selection.rows)

    st.subheader("Download Selected Datasets")
    payload = build_archive(catalog, selected_rows)
    if payload is None:
        st.info("Select one or more datasets in the table above.")
    else:
        name = archive_name()
        st.download_button(
            f"Download Selected Datasets ({len(selected_rows)})",
            data=payload,
            file_name=name,
            mime="application/zip",
        )
        st.caption(f"Archive: {name}")

    with st.expander("Help - Downloads", expanded=False):
        st.markdown(
            "Select rows in the table to bundle their raw dataset files into one zip archive.\n\n"
            "- The archive is named `nadepot_data_<YYYYMMDDHHMMSS>.zip`. The timestamp is taken "
            "when this page was last drawn (any change to the selection redraws it), "
            "not when the button is clicked.\n"
            "- Nothing is offered while no row is selected."
        )

# ------------------ Contact ------------------
else:
    st.header("Contact Us")
    st.markdown(f"Contact: {CFG.contact_email}")
