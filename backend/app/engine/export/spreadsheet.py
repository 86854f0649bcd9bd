# engine/export/spreadsheet.py
"""
Export Excel des visites — ZÉRO accès DB.

Reçoit des visites déjà filtrées par rôle (dict sérialisés, avec
commercial_name), retourne le binaire .xlsx.
"""
from datetime import date, datetime
from io import BytesIO
from typing import Any, Dict, List, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# (en-tête, largeur)
COLUMNS = [
    ("Date", 12),
    ("Entreprise", 35),
    ("Personne Rencontrée", 22),
    ("Fonction/Poste", 28),
    ("Email", 32),
    ("Téléphone", 15),
    ("Adresse", 35),
    ("Ville", 18),
    ("Zone", 18),
    ("Objet de la Visite", 40),
    ("Commentaire", 45),
    ("Statut Visite", 14),
    ("Statut Action", 14),
    ("Montant (DT)", 12),
    ("Probabilité (%)", 12),
    ("Commercial", 22),
    ("Créé le", 12),
]

STATUT_VISITE_LABELS = {"a_faire": "À faire", "en_cours": "En cours", "termine": "Terminée"}
STATUT_ACTION_LABELS = {"en_attente": "En attente", "accepte": "Acceptée", "refuse": "Refusée"}

# Colonnes texte long : Entreprise, Adresse, Fonction, Email, Objet, Commentaire
LONG_TEXT_COLUMNS = (2, 4, 5, 7, 10, 11)

HEADER_COLOR = "FF2E5090"
ZEBRA_COLOR = "FFF5F5F5"
BORDER_COLOR = "FFD0D0D0"


def export_filename(today: date) -> str:
    return f"visites_export_{today.strftime('%Y-%m-%d')}.xlsx"


def _format_date(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime("%d/%m/%Y")
    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value).strftime("%d/%m/%Y")
        except ValueError:
            return value
    return ""


def _number(value: Optional[float]) -> Any:
    return value if value else ""


def visit_row(visite: Dict[str, Any]) -> List[Any]:
    statut_visite = visite.get("statut_visite")
    statut_action = visite.get("statut_action")
    return [
        _format_date(visite.get("date_visite")),
        visite.get("entreprise") or "",
        visite.get("personne_rencontree") or "",
        visite.get("fonction_poste") or "",
        visite.get("email") or "",
        visite.get("tel_fixe") or visite.get("mobile") or "",
        visite.get("adresse") or "",
        visite.get("ville") or "",
        visite.get("zone") or "",
        visite.get("objet_visite") or "",
        visite.get("remarques") or "",
        STATUT_VISITE_LABELS.get(statut_visite, statut_visite or ""),
        STATUT_ACTION_LABELS.get(statut_action, statut_action or ""),
        _number(visite.get("montant")),
        _number(visite.get("probabilite")),
        visite.get("commercial_name") or "",
        _format_date(visite.get("created_at")),
    ]


def _row_height(visite: Dict[str, Any]) -> int:
    longest = max(
        len(visite.get(key) or "")
        for key in ("entreprise", "fonction_poste", "email", "objet_visite", "remarques")
    )
    if longest > 100:
        return 35
    if longest > 60:
        return 25
    return 20


def build_visits_workbook(visites: List[Dict[str, Any]]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Visites"

    header_side = Side(style="medium", color=HEADER_COLOR)
    header_thin = Side(style="thin", color=HEADER_COLOR)
    cell_side = Side(style="thin", color=BORDER_COLOR)

    ws.append([label for label, _ in COLUMNS])
    for idx, (_, width) in enumerate(COLUMNS, start=1):
        ws.column_dimensions[ws.cell(row=1, column=idx).column_letter].width = width
        cell = ws.cell(row=1, column=idx)
        cell.font = Font(name="Calibri", size=11, bold=True, color="FFFFFFFF")
        cell.fill = PatternFill(fill_type="solid", fgColor=HEADER_COLOR)
        cell.alignment = Alignment(horizontal="center", vertical="center")
        cell.border = Border(top=header_side, bottom=header_side, left=header_thin, right=header_thin)
    ws.row_dimensions[1].height = 25

    zebra = PatternFill(fill_type="solid", fgColor=ZEBRA_COLOR)
    for index, visite in enumerate(visites):
        ws.append(visit_row(visite))
        row_number = ws.max_row
        ws.row_dimensions[row_number].height = _row_height(visite)
        for col in range(1, len(COLUMNS) + 1):
            cell = ws.cell(row=row_number, column=col)
            cell.font = Font(name="Calibri", size=10)
            horizontal = "left" if col in LONG_TEXT_COLUMNS else None
            cell.alignment = Alignment(vertical="top", horizontal=horizontal, wrap_text=False)
            cell.border = Border(top=cell_side, bottom=cell_side, left=cell_side, right=cell_side)
            if index % 2 == 0:
                cell.fill = zebra

    ws.auto_filter.ref = "A1:Q1"
    ws.freeze_panes = "A2"

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
