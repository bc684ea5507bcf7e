from chat_gateway.services.chat_service.prompt_enhancer import PromptEnhancer, CONTEXT_HEADER


class TestPromptEnhancer:
    def test_no_context_block_without_prior_turns(self):
        prompt = PromptEnhancer.enhance("Hello", [])
        assert CONTEXT_HEADER not in prompt
        assert prompt.startswith("Eres un asistente AI")

    def test_context_block_precedes_instructions(self):
        prompt = PromptEnhancer.enhance("Hello", ["a", "b"])
        assert prompt.startswith(CONTEXT_HEADER + "\na\nb\n\n")
        assert prompt.index(CONTEXT_HEADER) < prompt.index("Instrucciones importantes")

    def test_user_prompt_is_embedded_literally(self):
        prompt = PromptEnhancer.enhance('Explica {format} y "comillas"')
        assert 'Prompt del usuario: "Explica {format} y "comillas""' in prompt
        assert prompt.endswith("Por favor, genera una respuesta de alta calidad:")

    def test_deterministic(self):
        turns = ["Usuario: hola", "Asistente: hola!"]
        assert PromptEnhancer.enhance("¿Qué tal?", turns) == PromptEnhancer.enhance("¿Qué tal?", turns)
