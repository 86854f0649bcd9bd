# tests/engine/export/test_spreadsheet.py
"""
Tests unitaires pour engine.export.spreadsheet

Couverture :
    export_filename()       → visites_export_YYYY-MM-DD.xlsx
    visit_row()             → 17 colonnes, libellés FR des statuts, téléphone fixe > mobile
    build_visits_workbook() → feuille "Visites", en-tête, filtre A1:Q1, volet figé A2
"""
import pytest
from datetime import date
from io import BytesIO

from openpyxl import load_workbook

from app.engine.export.spreadsheet import (
    COLUMNS,
    build_visits_workbook,
    export_filename,
    visit_row,
)

pytestmark = pytest.mark.engine


def visite(**kwargs) -> dict:
    defaults = {
        "date_visite": date(2025, 1, 15),
        "entreprise": "ACME",
        "personne_rencontree": "M. X",
        "tel_fixe": None,
        "mobile": "98 000 000",
        "remarques": "RAS",
        "statut_visite": "en_cours",
        "statut_action": "accepte",
        "montant": 1500.0,
        "probabilite": 40,
        "commercial_name": "Alice Martin",
        "created_at": "2025-01-15T10:00:00+00:00",
    }
    defaults.update(kwargs)
    return defaults


class TestExportFilename:
    def test_format(self):
        assert export_filename(date(2025, 2, 3)) == "visites_export_2025-02-03.xlsx"


class TestVisitRow:
    def test_dix_sept_colonnes(self):
        assert len(visit_row(visite())) == len(COLUMNS) == 17

    def test_dates_et_statuts(self):
        row = visit_row(visite())
        assert row[0] == "15/01/2025"
        assert row[11] == "En cours"
        assert row[12] == "Acceptée"
        assert row[16] == "15/01/2025"

    def test_telephone_mobile_en_secours(self):
        assert visit_row(visite())[5] == "98 000 000"
        assert visit_row(visite(tel_fixe="71 000 000"))[5] == "71 000 000"

    def test_montant_masque_vide(self):
        row = visit_row(visite(montant=None, probabilite=None))
        assert row[13] == ""
        assert row[14] == ""


class TestBuildWorkbook:
    def test_contenu(self):
        content = build_visits_workbook([visite(), visite(entreprise="Beta")])
        ws = load_workbook(BytesIO(content))["Visites"]
        assert ws.cell(row=1, column=1).value == "Date"
        assert ws.cell(row=1, column=17).value == "Créé le"
        assert ws.cell(row=2, column=2).value == "ACME"
        assert ws.cell(row=3, column=2).value == "Beta"
        assert ws.max_row == 3

    def test_filtre_et_volet(self):
        ws = load_workbook(BytesIO(build_visits_workbook([visite()])))["Visites"]
        assert ws.auto_filter.ref == "A1:Q1"
        assert ws.freeze_panes == "A2"
        assert ws.cell(row=1, column=1).font.bold is True
