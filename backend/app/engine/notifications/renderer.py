# engine/notifications/renderer.py
"""
Rendu de l'email de rendez-vous (création ou rappel) — ZÉRO I/O.

Entrée : données de formulaire du RDV, visite liée (ou None), créateur.
Sortie : RenderedEmail(subject, html).

Tout champ est optionnel : une valeur absente s'affiche "-".
Seul le panneau "visite liée" disparaît entièrement sans visite.
Toutes les valeurs sont échappées avant insertion dans le HTML.
"""
from dataclasses import dataclass
from datetime import datetime
from html import escape
from typing import Any, Dict, Iterable, List, Optional

from app.shared.enums import NotificationMode

PLACEHOLDER = "-"

SUBJECT_PREFIX = {
    NotificationMode.CREATION: "Nouveau rendez-vous planifié",
    NotificationMode.REMINDER: "Rappel de rendez-vous",
}

INTRO = {
    NotificationMode.CREATION: "Un nouveau rendez-vous vient d'être enregistré dans le CRM pour le compte suivant :",
    NotificationMode.REMINDER: "Ceci est un rappel pour le rendez-vous suivant enregistré dans le CRM :",
}


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str


# ── Helpers ───────────────────────────────────────────────────

def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _cell(value: Any) -> str:
    text = _text(value)
    return escape(text) if text else PLACEHOLDER


def creator_display_name(created_by: Optional[Dict[str, Any]]) -> str:
    """'prenom nom' depuis user_metadata, sinon email, sinon ''."""
    if not created_by:
        return ""
    meta = created_by.get("user_metadata") or {}
    full_name = f"{_text(meta.get('prenom'))} {_text(meta.get('nom'))}".strip()
    return full_name or _text(created_by.get("email"))


def dedupe_recipients(addresses: Iterable[Optional[str]]) -> List[str]:
    """Ordre conservé, comparaison insensible à la casse, vides ignorés."""
    seen = set()
    recipients: List[str] = []
    for address in addresses:
        cleaned = _text(address)
        if not cleaned or cleaned.lower() in seen:
            continue
        seen.add(cleaned.lower())
        recipients.append(cleaned)
    return recipients


def _row(label: str, value_html: str, bold: bool = False) -> str:
    weight = "font-weight:500;" if bold else ""
    return (
        "<tr>"
        f'<td style="padding:2px 8px 2px 0;color:#6b7280;">{label}</td>'
        f'<td style="padding:2px 0;{weight}">{value_html}</td>'
        "</tr>"
    )


# ── Sections ──────────────────────────────────────────────────

def _rdv_section(form: Dict[str, Any], entreprise: str) -> str:
    heure = _cell(form.get("heure_debut"))
    heure_fin = _text(form.get("heure_fin"))
    if heure_fin:
        heure = f"{heure} → {escape(heure_fin)}"

    priorite = escape(_text(form.get("priorite")) or "normale")
    statut = escape(_text(form.get("statut_rdv")) or "planifié")

    rows = [
        _row("Entreprise", _cell(entreprise), bold=True),
        _row("Contact", _cell(form.get("personne_contact"))),
        _row("Téléphone", _cell(form.get("tel_contact"))),
        _row("Email", _cell(form.get("email_contact"))),
        _row("Date", _cell(form.get("date_rdv"))),
        _row("Heure", heure),
        _row("Lieu", _cell(form.get("lieu"))),
        _row("Objet", _cell(form.get("objet"))),
        _row(
            "Priorité",
            '<span style="display:inline-block;padding:2px 8px;border-radius:999px;'
            f'background-color:#eff6ff;color:#1d4ed8;font-weight:500;">{priorite}</span>',
        ),
        _row("Statut", statut),
    ]
    return (
        '<td style="vertical-align:top;padding:12px 12px 12px 0;">'
        '<div style="font-size:13px;font-weight:600;color:#111827;margin-bottom:8px;">Détails du rendez-vous</div>'
        '<table cellspacing="0" cellpadding="0" style="font-size:13px;color:#374151;line-height:1.6;">'
        + "".join(rows)
        + "</table></td>"
    )


def _visite_section(visite: Optional[Dict[str, Any]]) -> str:
    if not visite:
        return ""

    ville_zone = " - ".join(v for v in (_text(visite.get("ville")), _text(visite.get("zone"))) if v)
    telephone = _text(visite.get("tel_fixe")) or _text(visite.get("mobile"))
    contact = escape(telephone) if telephone else PLACEHOLDER
    email = _text(visite.get("email"))
    if email:
        contact = f"{contact} · {escape(email)}"

    rows = [
        _row("Date visite", _cell(visite.get("date_visite"))),
        _row("Interlocuteur", _cell(visite.get("personne_rencontree"))),
        _row("Ville / Zone", _cell(ville_zone)),
        _row("Adresse", _cell(visite.get("adresse"))),
        _row("Contact", contact),
        _row("Objet de la visite", _cell(visite.get("objet_visite"))),
    ]
    return (
        '<td style="vertical-align:top;padding:12px 0 12px 12px;border-left:1px solid #e5e7eb;">'
        '<div style="font-size:13px;font-weight:600;color:#111827;margin-bottom:8px;">Détails de la visite liée</div>'
        '<table cellspacing="0" cellpadding="0" style="font-size:13px;color:#374151;line-height:1.6;">'
        + "".join(rows)
        + "</table></td>"
    )


def _description_section(description: str) -> str:
    if not description:
        return ""
    body = escape(description).replace("\n", "<br />")
    return (
        '<tr><td style="padding:0 24px 16px 24px;">'
        '<div style="font-size:13px;font-weight:600;color:#111827;margin-bottom:6px;">Notes complémentaires</div>'
        '<div style="font-size:13px;color:#4b5563;line-height:1.6;background-color:#f9fafb;'
        f'border-radius:8px;padding:10px 12px;border:1px solid #e5e7eb;">{body}</div>'
        "</td></tr>"
    )


# ── API publique ──────────────────────────────────────────────

def build_subject(
    form: Dict[str, Any], visite: Optional[Dict[str, Any]], mode: NotificationMode
) -> str:
    entreprise = _text(form.get("entreprise")) or _text((visite or {}).get("entreprise"))
    return (
        f"{SUBJECT_PREFIX[mode]} - {entreprise} - "
        f"{_text(form.get('date_rdv'))} {_text(form.get('heure_debut'))}"
    )


def render_rendezvous_email(
    form: Optional[Dict[str, Any]],
    visite: Optional[Dict[str, Any]],
    created_by: Optional[Dict[str, Any]],
    mode: NotificationMode = NotificationMode.CREATION,
    now: Optional[datetime] = None,
) -> RenderedEmail:
    """
    Construit sujet + HTML.

    Args:
        form:       champs du formulaire RDV (entreprise, date_rdv, heure_debut…)
        visite:     visite liée sérialisée, ou None
        created_by: {"email", "user_metadata": {"prenom", "nom"}}
        mode:       création ou rappel
        now:        horodatage affiché dans l'en-tête (déjà dans le fuseau voulu)
    """
    form = form or {}
    mode = NotificationMode(mode)
    entreprise = _text(form.get("entreprise")) or _text((visite or {}).get("entreprise"))
    commercial = creator_display_name(created_by) or "Commercial non renseigné"
    stamp = now.strftime("%d/%m/%Y %H:%M") if now else ""

    html = f"""
<div style="font-family:system-ui,-apple-system,'Segoe UI',sans-serif;background-color:#f4f5fb;padding:24px;">
  <table width="100%" cellspacing="0" cellpadding="0" style="max-width:720px;margin:0 auto;background-color:#ffffff;border-radius:12px;overflow:hidden;">
    <tr>
      <td style="background:linear-gradient(135deg,#0f172a,#1d4ed8);padding:20px 24px;color:#e5e7eb;">
        <div style="font-size:14px;letter-spacing:0.08em;text-transform:uppercase;opacity:0.8;">SalesTracker CRM</div>
        <div style="margin-top:4px;font-size:20px;font-weight:600;color:#f9fafb;">{SUBJECT_PREFIX[mode]}</div>
        <div style="margin-top:4px;font-size:13px;opacity:0.85;">Créé par {escape(commercial)} · {stamp}</div>
      </td>
    </tr>
    <tr>
      <td style="padding:24px 24px 12px 24px;">
        <div style="font-size:15px;color:#111827;margin-bottom:12px;">Bonjour,</div>
        <div style="font-size:14px;color:#4b5563;line-height:1.6;">
          {INTRO[mode]}
          <span style="font-weight:600;color:#111827;">{escape(entreprise) or "Entreprise non renseignée"}</span>.
        </div>
      </td>
    </tr>
    <tr>
      <td style="padding:4px 24px 16px 24px;">
        <table width="100%" cellspacing="0" cellpadding="0" style="border-collapse:collapse;">
          <tr>
            {_rdv_section(form, entreprise)}
            {_visite_section(visite)}
          </tr>
        </table>
      </td>
    </tr>
    {_description_section(_text(form.get("description")))}
    <tr>
      <td style="padding:8px 24px 20px 24px;">
        <div style="font-size:11px;color:#9ca3af;line-height:1.5;">
          Cet email a été généré automatiquement par SalesTracker. Merci de ne pas y répondre directement.
        </div>
      </td>
    </tr>
  </table>
</div>
"""
    return RenderedEmail(subject=build_subject(form, visite, mode), html=html)
