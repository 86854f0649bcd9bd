# tests/engine/visibility/test_policy.py
"""
Tests unitaires pour engine.visibility.policy

Couverture :
    can_view_sensitive() :
        - admin / superieur / consultant → True quelle que soit la visite
        - commercial propriétaire → True, non propriétaire → False
        - rôle inconnu ou absent → traité comme non privilégié
    redact_visit() :
        - montant / probabilite à None pour un non-autorisé
        - valeurs intactes pour le propriétaire
        - l'objet d'origine n'est jamais modifié
    redact_visits() :
        - scénario mixte : ses visites visibles, celles des autres masquées
"""
import pytest

from app.engine.visibility.policy import (
    SENSITIVE_FIELDS,
    can_view_sensitive,
    redact_visit,
    redact_visits,
)
from app.shared.enums import UserRole

pytestmark = pytest.mark.engine

ALICE = "alice-id"
BOB = "bob-id"


def visite(owner: str = ALICE, montant=5000.0, probabilite=70) -> dict:
    return {
        "id": f"v-{owner}",
        "commercial_id": owner,
        "entreprise": "ACME",
        "montant": montant,
        "probabilite": probabilite,
    }


class TestCanViewSensitive:
    @pytest.mark.parametrize("role", [UserRole.ADMIN, UserRole.SUPERIEUR, UserRole.CONSULTANT])
    def test_roles_eleves_voient_tout(self, role):
        assert can_view_sensitive(visite(owner=BOB), ALICE, role) is True

    def test_roles_eleves_en_chaine(self):
        assert can_view_sensitive(visite(owner=BOB), ALICE, "consultant") is True

    def test_commercial_proprietaire(self):
        assert can_view_sensitive(visite(owner=ALICE), ALICE, UserRole.COMMERCIAL) is True

    def test_commercial_non_proprietaire(self):
        assert can_view_sensitive(visite(owner=BOB), ALICE, UserRole.COMMERCIAL) is False

    def test_role_inconnu_non_privilegie(self):
        assert can_view_sensitive(visite(owner=BOB), ALICE, "stagiaire") is False

    def test_role_absent_proprietaire_voit_ses_visites(self):
        assert can_view_sensitive(visite(owner=ALICE), ALICE, None) is True

    def test_visite_sans_proprietaire(self):
        assert can_view_sensitive(visite(owner=None), ALICE, UserRole.COMMERCIAL) is False


class TestRedactVisit:
    def test_champs_sensibles_masques(self):
        result = redact_visit(visite(owner=BOB), ALICE, UserRole.COMMERCIAL)
        for field in SENSITIVE_FIELDS:
            assert result[field] is None

    def test_autres_champs_conserves(self):
        result = redact_visit(visite(owner=BOB), ALICE, UserRole.COMMERCIAL)
        assert result["entreprise"] == "ACME"
        assert result["commercial_id"] == BOB

    def test_proprietaire_voit_les_valeurs(self):
        result = redact_visit(visite(owner=ALICE), ALICE, UserRole.COMMERCIAL)
        assert result["montant"] == 5000.0
        assert result["probabilite"] == 70

    def test_original_non_modifie(self):
        original = visite(owner=BOB)
        redact_visit(original, ALICE, UserRole.COMMERCIAL)
        assert original["montant"] == 5000.0
        assert original["probabilite"] == 70


class TestRedactVisits:
    def test_scenario_mixte(self):
        visites = [visite(owner=ALICE, montant=1000.0), visite(owner=BOB, montant=9000.0)]
        result = redact_visits(visites, ALICE, UserRole.COMMERCIAL)
        assert result[0]["montant"] == 1000.0
        assert result[1]["montant"] is None
        assert result[1]["probabilite"] is None

    def test_consultant_voit_tout(self):
        visites = [visite(owner=ALICE), visite(owner=BOB)]
        result = redact_visits(visites, "carol-id", UserRole.CONSULTANT)
        assert [v["montant"] for v in result] == [5000.0, 5000.0]

    def test_liste_vide(self):
        assert redact_visits([], ALICE, UserRole.COMMERCIAL) == []
