from pathlib import Path

import pytest

from nadepot.catalog import Catalog
from nadepot.config import load_config

CATALOG_CSV = """\
data_id,species,tissue,cell_line,condition,description
hs_hek_ctrl.csv,Homo sapiens,NULL,HEK293T,control,HEK293T control
hs_hek_nmn.csv,Homo sapiens,NULL,HEK293T,NMN,HEK293T NMN
hs_hela_ctrl.csv,Homo sapiens,NULL,HeLa,control,HeLa control
hs_brain_ctrl.csv,Homo sapiens,brain,NULL,control,brain control
mm_liver_ctrl.csv,Mus musculus,liver,NULL,control,liver control
mm_liver_fast.csv,Mus musculus,liver,NULL,fasting,liver fasting
"""

ANNOTATION_CSV = """\
gene_id,symbol,gene_biotype
G1,ACTB,protein_coding
G2,GAPDH,protein_coding
G3,MALAT1,lncRNA
G4,MT-RNR2,Mt_rRNA
G5,RN7SK,misc_RNA
G6,XIST,lncRNA
"""

MEASUREMENTS_CSV = """\
gene_id,logCPM,log2_fold_change,FDR
G1,10.23456,2.345678,0.000123
G2,11.98765,-1.876543,0.001234
G3,9.12345,3.210987,0.0000456
G4,12.34567,4.567891,0.0000012
G5,8.76543,1.2345,0.0345678
G6,7.00049,0.5,1
G9,5.5,1.1111,0.04
"""


def write_data_dir(root: Path) -> Path:
    data = root / "data"
    data.mkdir()
    (data / "phenoData.csv").write_text(CATALOG_CSV, encoding="utf-8")
    (data / "gene_features.csv").write_text(ANNOTATION_CSV, encoding="utf-8")
    for line in CATALOG_CSV.splitlines()[1:]:
        data_id = line.split(",")[0]
        (data / data_id).write_text(MEASUREMENTS_CSV, encoding="utf-8")
    return data


@pytest.fixture
def data_dir(tmp_path):
    return write_data_dir(tmp_path)


@pytest.fixture
def config(data_dir, monkeypatch):
    monkeypatch.delenv("NADEPOT_CONFIG", raising=False)
    return load_config(base_dir=data_dir.parent)


@pytest.fixture
def catalog(config):
    return Catalog.load(config)
