import pytest

from chat_gateway.services.chat_service.response_formatter import (
    ResponseFormatter, SimpleResponse, DetailedResponse
)

SENTENCE = "x" * 40


class TestPostProcess:
    def test_collapses_blank_line_runs(self):
        assert ResponseFormatter.post_process("Uno.\n\n\n   \nDos.") == "Uno.\n\nDos."

    def test_single_space_after_terminal_punctuation(self):
        assert ResponseFormatter.post_process("Hola.¿Qué tal?Bien!  Gracias") == "Hola. ¿Qué tal? Bien! Gracias"

    def test_keeps_decimals_and_trims(self):
        assert ResponseFormatter.post_process("  Pi is 3.14.  ") == "Pi is 3.14."

    def test_short_text_is_not_reparagraphed(self):
        text = "Respuesta corta sin punto final"
        assert ResponseFormatter.post_process(text) == text

    def test_long_text_is_reparagraphed_greedily(self):
        raw = ". ".join([SENTENCE] * 6) + "."
        expected = "\n\n".join([f"{SENTENCE}. {SENTENCE}."] * 3)
        assert ResponseFormatter.post_process(raw) == expected

    def test_reparagraphed_text_ends_with_period(self):
        raw = ". ".join([SENTENCE] * 5)
        result = ResponseFormatter.post_process(raw)
        assert result.endswith(".")
        assert all(paragraph.endswith(".") for paragraph in result.split("\n\n"))

    def test_existing_paragraphs_are_kept(self):
        raw = ("A" * 100) + ".\n\n" + ("B" * 100) + "."
        assert ResponseFormatter.post_process(raw) == raw

    @pytest.mark.parametrize("raw", [
        "Hola.Mundo!  Otra frase?Sí.",
        ". ".join([SENTENCE] * 7),
        "Línea uno.\n\n\n\nLínea dos.   Tres.",
        "Cuesta 2.50 euros.Vale.",
        "",
    ])
    def test_idempotent(self, raw):
        once = ResponseFormatter.post_process(raw)
        assert ResponseFormatter.post_process(once) == once


class TestClassify:
    def test_boundary_200_is_simple(self):
        text = "a" * 200
        formatted = ResponseFormatter.classify(text)
        assert isinstance(formatted, SimpleResponse)
        assert formatted.summary == text
        assert formatted.length == 200

    def test_boundary_201_is_detailed(self):
        text = "a" * 201
        formatted = ResponseFormatter.classify(text)
        assert isinstance(formatted, DetailedResponse)
        assert formatted.summary == "a" * 150 + "..."
        assert formatted.length == 201

    def test_newline_makes_it_detailed(self):
        formatted = ResponseFormatter.classify("Uno\nDos")
        assert formatted.kind == "detailed"
        assert formatted.summary == "Uno\nDos..."

    def test_to_dict(self):
        assert ResponseFormatter.classify("Hola").to_dict() == {
            "type": "simple",
            "content": "Hola",
            "summary": "Hola",
            "length": 4
        }
