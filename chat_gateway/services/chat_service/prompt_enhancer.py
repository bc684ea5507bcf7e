from typing import Sequence

CONTEXT_HEADER = "Contexto de la conversación:"

INSTRUCTION_TEMPLATE = """Eres un asistente AI útil, preciso y profesional. Responde en el mismo idioma que el usuario.

Instrucciones importantes:
- Proporciona respuestas claras, concisas y bien estructuradas
- Si es una pregunta técnica, sé preciso y detallado
- Si es una pregunta creativa, sé innovador pero coherente
- Mantén un tono profesional pero amigable
- Organiza la información de manera lógica usando párrafos y listas cuando sea apropiado
- Verifica la coherencia de tu respuesta
- Puedes utilizar emojis la respuesta

Prompt del usuario: "{user_prompt}"

Por favor, genera una respuesta de alta calidad:"""


class PromptEnhancer:
    """Wraps a user prompt in the assistant instructions and prior turns."""

    @staticmethod
    def enhance(user_prompt: str, prior_turns: Sequence[str] = ()) -> str:
        context_block = ""
        if prior_turns:
            context_block = CONTEXT_HEADER + "\n" + "\n".join(prior_turns) + "\n\n"

        # str.replace keeps braces inside the user prompt literal
        return context_block + INSTRUCTION_TEMPLATE.replace("{user_prompt}", user_prompt)
