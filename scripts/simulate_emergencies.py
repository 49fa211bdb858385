import asyncio
import sys

from dotenv import load_dotenv

# Load environment variables (BACKEND_BASE_URL, FALLBACK_MODE, ...)
load_dotenv()

from ayuda.config import Settings
from ayuda.services.conversation import ConversationManager

SCENARIOS = [
    ("Herida de bala", "Me dispararon en la pierna, hay mucha sangre y duele mucho, no puedo caminar"),
    ("Corte profundo", "Me corté la mano con un cuchillo, está sangrando mucho"),
    ("Quemadura", "Me quemé con agua caliente en el brazo, me duele mucho"),
    ("Caída", "Me caí de las escaleras, me duele mucho la espalda y no puedo moverme"),
]


async def main(texts):
    config = Settings()
    print(f"Backend: {config.backend_base_url} (fallback: {config.fallback_mode})\n")
    async with ConversationManager(config) as conversation:
        for name, text in texts:
            conversation.reset_session()
            reply = await conversation.send_message(text)
            print(f"▶ {name}: {text}")
            print(f"  [{reply.severity or '-'}] {reply.response_text}  (source: {reply.source})")
            for step in reply.instructions:
                print(f"   - {step}")
            if reply.should_call_emergency:
                print(f"   📞 Llamar a emergencias ({config.emergency_number})")
            print()


if __name__ == "__main__":
    custom = [("Entrada", " ".join(sys.argv[1:]))] if len(sys.argv) > 1 else None
    asyncio.run(main(custom or SCENARIOS))
