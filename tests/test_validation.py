import unittest

from pac_portal.core.errors import ValidationError
from pac_portal.schemas.agents import AgentCreate, AgentUpdate
from pac_portal.schemas.events import EventCreate
from pac_portal.schemas.gallery import CategoriaCreate
from pac_portal.schemas.notifications import NotificationSend
from pac_portal.schemas.validation import error_details, validate_id, validate_input
from pac_portal.services.slugs import available_slug, make_slug, slug_problem


class ValidateInputTests(unittest.TestCase):
    def test_missing_and_short_fields_become_field_map(self):
        with self.assertRaises(ValidationError) as caught:
            validate_input(AgentCreate, {"matricula": "123", "email": "nao-e-email", "full_name": "A"})
        details = caught.exception.details
        self.assertEqual(caught.exception.message, "Erro de validação")
        self.assertEqual(caught.exception.status_code, 400)
        self.assertEqual(details["matricula"], ["Matrícula deve ter exatamente 11 dígitos"])
        self.assertIn("email", details)
        self.assertEqual(details["full_name"], ["Deve ter no mínimo 2 caracteres"])

    def test_matricula_is_normalized_to_digits(self):
        data = validate_input(
            AgentCreate,
            {"matricula": "123.456.789-01", "email": "Agente@PAC.org.br", "full_name": "Agente", "uf": "sp"},
        )
        self.assertEqual(data.matricula, "12345678901")
        self.assertEqual(data.email, "agente@pac.org.br")
        self.assertEqual(data.uf, "SP")

    def test_unknown_fields_are_rejected(self):
        with self.assertRaises(ValidationError) as caught:
            validate_input(AgentUpdate, {"senha": "x"})
        self.assertEqual(caught.exception.details, {"senha": ["Campo não permitido"]})

    def test_blank_optional_fields_become_null(self):
        data = validate_input(AgentUpdate, {"telefone": "  ", "graduacao": ""})
        self.assertIsNone(data.telefone)
        self.assertIsNone(data.graduacao)

    def test_enum_membership(self):
        with self.assertRaises(ValidationError) as caught:
            validate_input(
                CategoriaCreate,
                {"nome": "Operações", "slug": "operacoes", "tipo": "audio"},
            )
        self.assertEqual(caught.exception.details, {"tipo": ["Valor inválido"]})

    def test_none_payload_reports_required_fields(self):
        with self.assertRaises(ValidationError) as caught:
            validate_input(NotificationSend, None)
        self.assertEqual(caught.exception.details["title"], ["Campo obrigatório"])
        self.assertEqual(caught.exception.details["message"], ["Campo obrigatório"])

    def test_model_level_error_goes_to_root(self):
        with self.assertRaises(ValidationError) as caught:
            validate_input(NotificationSend, {"title": "Aviso", "message": "Teste"})
        self.assertIn("_root", caught.exception.details)

    def test_event_end_before_start(self):
        with self.assertRaises(ValidationError) as caught:
            validate_input(
                EventCreate,
                {
                    "title": "Treinamento",
                    "type": "curso",
                    "category": "training",
                    "start_date": "2026-05-10",
                    "end_date": "2026-05-01",
                    "time_display": "08:00",
                    "location": "Base",
                },
            )
        self.assertEqual(
            caught.exception.details, {"end_date": ["A data final deve ser igual ou posterior à data inicial"]}
        )


class ValidateIdTests(unittest.TestCase):
    def test_rejects_malformed_id(self):
        with self.assertRaises(ValidationError) as caught:
            validate_id("not-a-uuid")
        self.assertEqual(caught.exception.details, {"id": ["ID inválido"]})

    def test_lowercases_valid_id(self):
        self.assertEqual(
            validate_id("0B5E2C4A-1F3D-4E6A-9B7C-8D9E0F1A2B3C"),
            "0b5e2c4a-1f3d-4e6a-9b7c-8d9e0f1a2b3c",
        )


class RequestErrorDetailsTests(unittest.TestCase):
    def test_strips_request_location(self):
        errors = [
            {"type": "missing", "loc": ("body", "titulo"), "msg": "Field required"},
            {"type": "int_parsing", "loc": ("query", "page"), "msg": "bad"},
        ]
        self.assertEqual(
            error_details(errors, skip_prefix=True),
            {"titulo": ["Campo obrigatório"], "page": ["Deve ser um número inteiro"]},
        )


class SlugTests(unittest.TestCase):
    def test_make_slug_strips_accents(self):
        self.assertEqual(make_slug("Operação Verão & Cia"), "operacao-verao-e-cia")

    def test_slug_rules(self):
        self.assertEqual(slug_problem("ab"), "Slug deve ter pelo menos 3 caracteres")
        self.assertEqual(slug_problem("Maiusculo"), "Slug deve conter apenas letras minúsculas, números e hífens")
        self.assertEqual(slug_problem("-inicio"), "Slug não pode começar ou terminar com hífen")
        self.assertEqual(slug_problem("duplo--hifen"), "Slug não pode ter hífens consecutivos")
        self.assertIsNone(slug_problem("treinamento-2026"))

    def test_available_slug_appends_suffix(self):
        taken = {"treinamentos", "treinamentos-2"}
        self.assertEqual(available_slug("Treinamentos", taken.__contains__), "treinamentos-3")
        self.assertEqual(available_slug("!!!", taken.__contains__, fallback="categoria"), "categoria")
