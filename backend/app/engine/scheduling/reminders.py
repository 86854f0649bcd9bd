# engine/scheduling/reminders.py
"""
Calculs temporels du pipeline de rappels — ZÉRO accès DB.

- date_rdv     : date + heure saisies, interprétées dans le fuseau applicatif
- rappel_date  : date_rdv - 24h, fixe (rappel_avant est ignoré)
- fenêtre      : un sweep traite les rappels échus depuis au plus 60 min.
                 Au-delà, le rappel est considéré manqué et n'est jamais rejoué.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Optional, Tuple
from zoneinfo import ZoneInfo

REMINDER_LEAD_MINUTES = 24 * 60
REMINDER_WINDOW_MINUTES = 60
DEFAULT_DURATION_MINUTES = 60


@dataclass(frozen=True)
class ReminderWindow:
    start: datetime   # inclus
    end: datetime     # inclus (= now)

    def contains(self, moment: Optional[datetime]) -> bool:
        if moment is None:
            return False
        return self.start <= moment <= self.end


def parse_time(value: str) -> time:
    """'09:30' ou '09:30:00' → time."""
    parts = [int(p) for p in value.strip().split(":")]
    hours, minutes = parts[0], parts[1] if len(parts) > 1 else 0
    return time(hours, minutes)


def combine_date_time(day: date, heure: str, tz_name: str) -> datetime:
    """Date + heure saisies → datetime aware dans le fuseau applicatif."""
    return datetime.combine(day, parse_time(heure), tzinfo=ZoneInfo(tz_name))


def compute_reminder_at(
    date_rdv: datetime, lead_minutes: int = REMINDER_LEAD_MINUTES
) -> datetime:
    """Décalage absolu en UTC : 24h réelles, même autour d'un changement d'heure."""
    return date_rdv.astimezone(timezone.utc) - timedelta(minutes=lead_minutes)


def compute_duration(heure_debut: str, heure_fin: Optional[str]) -> int:
    if not heure_fin:
        return DEFAULT_DURATION_MINUTES
    debut = parse_time(heure_debut)
    fin = parse_time(heure_fin)
    return (fin.hour * 60 + fin.minute) - (debut.hour * 60 + debut.minute)


def reminder_window(
    now: datetime, window_minutes: int = REMINDER_WINDOW_MINUTES
) -> ReminderWindow:
    return ReminderWindow(start=now - timedelta(minutes=window_minutes), end=now)


def is_due(
    reminder_at: Optional[datetime],
    now: datetime,
    window_minutes: int = REMINDER_WINDOW_MINUTES,
) -> bool:
    return reminder_window(now, window_minutes).contains(reminder_at)


def split_local(moment: Optional[datetime], tz_name: str) -> Tuple[str, str]:
    """datetime stocké → ('YYYY-MM-DD', 'HH:MM') dans le fuseau applicatif."""
    if moment is None:
        return "", ""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    local = moment.astimezone(ZoneInfo(tz_name))
    return local.strftime("%Y-%m-%d"), local.strftime("%H:%M")


def form_from_row(row: Dict[str, Any], tz_name: str) -> Dict[str, Any]:
    """
    Reconstruit les données de formulaire d'un rendez-vous stocké,
    pour le rendu de l'email de rappel.
    rappel_avant est toujours None : le rappel auto se base sur rappel_date.
    """
    date_str, heure_debut = split_local(row.get("date_rdv"), tz_name)
    form: Dict[str, Any] = {
        "entreprise": row.get("entreprise") or "",
        "personne_contact": row.get("personne_contact") or "",
        "date_rdv": date_str,
        "heure_debut": heure_debut,
        "rappel_avant": None,
    }
    optional = {
        "tel_contact": "telephone",
        "email_contact": "email",
        "objet": "objet",
        "description": "description",
        "lieu": "adresse",
        "statut_rdv": "statut",
        "priorite": "priorite",
        "visite_id": "visite_id",
    }
    for form_key, row_key in optional.items():
        if row.get(row_key):
            form[form_key] = row[row_key]
    return form
