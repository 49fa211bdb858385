"""
Ayuda emergency classifier: keyword rules -> EmergencyResponse.
Used when the chat backend is unreachable, and by the reference backend itself.

Rules are checked in order and the first match wins. The order is clinical
priority (airway, breathing, circulation first), so e.g. choking is checked
before generic trauma.
"""
import logging
import unicodedata
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from ayuda.schemas.emergency import EmergencyResponse, Severity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tier:
    """Response for one severity tier of a category."""

    response: str
    instructions: Tuple[str, ...]
    severity: Severity
    call: bool = False
    questions: Tuple[str, ...] = ()
    triggers: Tuple[str, ...] = ()  # secondary triggers; empty on a category's default tier


@dataclass(frozen=True)
class Rule:
    category: str
    triggers: Tuple[str, ...]
    default: Tier
    tiers: Tuple[Tier, ...] = ()  # checked in order before `default`

    def matches(self, text: str) -> bool:
        return _contains_any(text, self.triggers)

    def pick_tier(self, text: str) -> Tier:
        for tier in self.tiers:
            if _contains_any(text, tier.triggers):
                return tier
        return self.default


def _contains_any(text: str, triggers: Iterable[str]) -> bool:
    return any(t in text for t in triggers)


RULES: Tuple[Rule, ...] = (
    Rule(
        category="choking",
        triggers=("asfixia", "atragant", "no puede respirar", "ahogo"),
        default=Tier(
            response="EMERGENCIA CRÍTICA: Atragantamiento detectado.",
            instructions=(
                'Preguntar: "¿Te estás atragantando?" Si no puede responder, actuar inmediatamente',
                "Colocarse detrás de la persona",
                "Rodear el abdomen con los brazos",
                "Colocar el puño sobre el ombligo y la otra mano encima",
                "Realizar compresiones abdominales rápidas hacia adentro y arriba (maniobra de Heimlich)",
                "Repetir hasta que expulse el objeto o pierda la conciencia",
            ),
            severity="critical",
            call=True,
        ),
    ),
    Rule(
        category="cardiac_arrest",
        triggers=("no responde", "inconsciente", "no respira", "rcp"),
        default=Tier(
            response="EMERGENCIA CRÍTICA: Posible paro cardiorrespiratorio.",
            instructions=(
                'Verificar respuesta: golpear los hombros y gritar "¿Estás bien?"',
                "Si no responde y no respira: llamar a emergencias inmediatamente",
                "Iniciar RCP: colocar las manos en el centro del pecho",
                "Brazos rectos, presionar fuerte y rápido: 100 a 120 compresiones por minuto",
                "Permitir que el pecho vuelva a su posición entre compresiones",
                "No detenerse hasta que llegue ayuda profesional",
            ),
            severity="critical",
            call=True,
        ),
    ),
    Rule(
        category="penetrating_trauma",
        triggers=(
            "disparo", "dispararon", "balazo", "una bala", "la bala", "de bala",
            "apuñal", "objeto clavado", "cuchillo",
        ),
        default=Tier(
            response="EMERGENCIA CRÍTICA: Herida penetrante detectada. Mantén la calma.",
            instructions=(
                "NO retirar la bala ni ningún objeto incrustado",
                "Aplicar presión directa alrededor de la herida con ropa limpia, sin presionar sobre el objeto",
                "Estabilizar el objeto con vendajes alrededor",
                "Elevar la extremidad por encima del corazón si es posible",
                "Mantener a la persona calmada y acostada",
                "Vigilar que siga consciente y respirando hasta que llegue la ambulancia",
            ),
            severity="critical",
            call=True,
            questions=(
                "¿La persona está consciente y puede hablar?",
                "¿Hay mucha pérdida de sangre?",
                "¿Puede ver la bala o hay un orificio de salida?",
            ),
        ),
    ),
    Rule(
        category="severe_bleeding",
        triggers=("mucha sangre", "sangrado abundante", "no para de sangrar", "hemorragia"),
        default=Tier(
            response="EMERGENCIA: Hemorragia severa detectada.",
            instructions=(
                "Presionar con fuerza usando tela limpia o gasa",
                "NO retirar el apósito si se empapa, añadir más encima",
                "Elevar la zona herida por encima del corazón si es posible",
                "Mantener presión constante",
                "Llamar a emergencias inmediatamente",
            ),
            severity="critical",
            call=True,
        ),
    ),
    Rule(
        category="chest_pain",
        triggers=("dolor pecho", "dolor en el pecho", "dolor de pecho", "pecho duele", "duele el pecho", "infarto"),
        tiers=(
            Tier(
                triggers=(
                    "opresivo", "opresión", "sudor", "náusea", "nausea",
                    "falta aire", "falta de aire", "brazo izquierdo", "infarto",
                ),
                response="EMERGENCIA: Síntomas de posible infarto detectados.",
                instructions=(
                    "Sentar o acostar a la persona en posición cómoda",
                    "Aflojar la ropa ajustada",
                    "Si tiene nitroglicerina prescrita, administrarla",
                    "Si no es alérgica, puede masticar una aspirina",
                    "NO dejar sola a la persona",
                    "Prepararse para RCP si pierde la conciencia",
                ),
                severity="critical",
                call=True,
            ),
        ),
        default=Tier(
            response="¿Es un dolor punzante que aparece al moverse o respirar hondo?",
            instructions=(
                "Puede ser dolor muscular",
                "Reposar y observar",
                "Si empeora o aparecen otros síntomas, buscar atención médica",
            ),
            severity="low",
        ),
    ),
    Rule(
        category="allergic_reaction",
        triggers=(
            "alergia", "alérgic", "anafila", "cara hinchada", "labios hinchados",
            "garganta hinchada", "lengua hinchada",
        ),
        tiers=(
            Tier(
                triggers=("garganta", "labios", "lengua", "respirar"),
                response="EMERGENCIA CRÍTICA: Posible reacción alérgica grave (anafilaxia).",
                instructions=(
                    "Si tiene autoinyector de adrenalina, usarlo en el muslo de inmediato",
                    "Mantener a la persona sentada si le cuesta respirar",
                    "Aflojar la ropa ajustada",
                    "Si pierde la conciencia, acostarla de lado",
                    "Estar listo para iniciar RCP",
                ),
                severity="critical",
                call=True,
            ),
        ),
        default=Tier(
            response="¿La reacción es solo en la piel, sin dificultad para respirar?",
            instructions=(
                "Alejar a la persona de lo que causó la reacción",
                "Lavar la piel con agua y jabón si hubo contacto",
                "Puede tomar un antihistamínico si ya lo ha usado antes",
                "Si se hinchan labios, lengua o garganta: llamar a emergencias",
            ),
            severity="medium",
        ),
    ),
    Rule(
        category="poisoning",
        triggers=("sobredosis", "envenen", "veneno", "pastillas", "químico"),
        default=Tier(
            response="EMERGENCIA CRÍTICA: Posible intoxicación por sustancia o medicamento.",
            instructions=(
                "NO provocar el vómito",
                "Guardar el envase o la sustancia para mostrarlo al personal médico",
                "Si está inconsciente pero respira, acostarla de lado",
                "No darle nada de comer ni de beber",
                "Vigilar la respiración hasta que llegue la ayuda",
            ),
            severity="critical",
            call=True,
        ),
    ),
    Rule(
        category="seizure",
        triggers=("convuls", "epilep"),
        default=Tier(
            response="EMERGENCIA: Crisis convulsiva detectada.",
            instructions=(
                "Retirar objetos cercanos con los que pueda golpearse",
                "Proteger la cabeza con algo blando",
                "NO sujetar a la persona ni meter nada en su boca",
                "Contar cuánto dura la convulsión",
                "Cuando termine, colocarla de lado",
            ),
            severity="high",
            call=True,
        ),
    ),
    Rule(
        category="electric_shock",
        triggers=("electrocut", "choque eléctrico", "descarga eléctrica", "corriente eléctrica"),
        default=Tier(
            response="EMERGENCIA: Choque eléctrico.",
            instructions=(
                "NO tocar a la persona si sigue en contacto con la corriente",
                "Cortar la electricidad o separar la fuente con un objeto seco no conductor",
                "Verificar si respira; si no, iniciar RCP",
                "Cubrir las quemaduras con gasa estéril",
            ),
            severity="high",
            call=True,
        ),
    ),
    Rule(
        category="drowning",
        triggers=("ahogamiento", "se ahogó", "se estaba ahogando", "casi se ahoga", "sacamos del agua"),
        default=Tier(
            response="EMERGENCIA CRÍTICA: Posible ahogamiento.",
            instructions=(
                "Sacar a la persona del agua solo si es seguro hacerlo",
                "Verificar si respira",
                "Si no respira, dar 5 respiraciones de rescate e iniciar RCP",
                "Si respira, colocarla de lado y abrigarla",
            ),
            severity="critical",
            call=True,
        ),
    ),
    Rule(
        category="head_injury",
        triggers=("golpe en la cabeza", "golpeó la cabeza", "golpeé la cabeza", "traumatismo craneal"),
        tiers=(
            Tier(
                triggers=("vomit", "vómito", "confus", "perdió el conocimiento", "sangra"),
                response="EMERGENCIA: Golpe en la cabeza con signos de alarma.",
                instructions=(
                    "NO mover el cuello de la persona",
                    "Mantenerla acostada y quieta",
                    "Si sangra, presionar suavemente con gasa limpia",
                    "Si vomita, girarla de lado con cuidado",
                    "Vigilar la conciencia hasta que llegue la ayuda",
                ),
                severity="critical",
                call=True,
            ),
        ),
        default=Tier(
            response="¿La persona está consciente, orientada y sin vómitos?",
            instructions=(
                "Aplicar frío envuelto en un paño sobre el golpe",
                "Mantener reposo y observar durante 24 horas",
                "Si aparece somnolencia, vómito o confusión: llamar a emergencias",
            ),
            severity="medium",
        ),
    ),
    Rule(
        category="fainting",
        triggers=("desmay",),
        default=Tier(
            response="¿La persona ya recuperó el conocimiento?",
            instructions=(
                "Acostar a la persona boca arriba",
                "Elevar sus piernas unos 30 centímetros",
                "Aflojar la ropa ajustada",
                "Si no despierta en un minuto: llamar a emergencias",
            ),
            severity="medium",
        ),
    ),
    Rule(
        category="heatstroke",
        triggers=("insolación", "golpe de calor"),
        default=Tier(
            response="EMERGENCIA: Posible golpe de calor.",
            instructions=(
                "Llevar a la persona a la sombra o a un lugar fresco",
                "Quitar el exceso de ropa",
                "Enfriar con paños húmedos en cuello, axilas e ingles",
                "Si está consciente, darle agua en sorbos pequeños",
            ),
            severity="high",
            call=True,
        ),
    ),
    Rule(
        category="hypothermia",
        triggers=("hipotermia", "congelad", "mucho frío"),
        default=Tier(
            response="EMERGENCIA: Posible hipotermia.",
            instructions=(
                "Llevar a la persona a un lugar cálido",
                "Quitar la ropa mojada",
                "Abrigar con mantas, empezando por el tronco",
                "NO frotar la piel ni aplicar calor directo",
            ),
            severity="high",
            call=True,
        ),
    ),
    Rule(
        category="burns",
        triggers=("quemadura", "quemé", "quemó", "quemado", "fuego", "caliente", "hirviendo"),
        tiers=(
            Tier(
                triggers=("extensa", "grave", "en la cara", "todo el cuerpo"),
                response="EMERGENCIA: Quemadura grave o extensa.",
                instructions=(
                    "Alejar a la persona de la fuente de calor",
                    "NO retirar la ropa pegada a la piel",
                    "Cubrir con un paño limpio y húmedo",
                    "NO aplicar hielo, cremas ni remedios caseros",
                    "Abrigar a la persona para evitar que se enfríe",
                ),
                severity="high",
                call=True,
            ),
            Tier(
                triggers=("ampolla", "húmeda", "grande"),
                response="Quemadura de segundo grado detectada.",
                instructions=(
                    "Enfriar con agua a temperatura ambiente durante 10 a 15 minutos",
                    "Cubrir con gasa estéril sin apretar",
                    "NO romper las ampollas",
                    "NO aplicar cremas, pasta dental ni remedios caseros",
                    "Si la zona es grande o en partes sensibles: llamar a emergencias",
                ),
                severity="medium",
            ),
        ),
        default=Tier(
            response="Quemadura superficial identificada.",
            instructions=(
                "Enfriar con agua corriente (no helada) durante 10 a 20 minutos",
                "NO usar hielo, manteca ni pasta dental",
                "Secar con suavidad y cubrir con gasa estéril",
                "Puede tomar un analgésico si ya lo ha usado antes",
            ),
            severity="low",
        ),
    ),
    Rule(
        category="fracture",
        triggers=("fractura", "hueso roto", "no puedo mover", "deformidad"),
        default=Tier(
            response="Posible fractura detectada.",
            instructions=(
                "NO mover la zona afectada",
                "Inmovilizar con una férula improvisada si sabe hacerlo",
                "Aplicar hielo envuelto en tela",
                "Controlar el dolor sin mover el hueso",
                "Buscar atención médica urgente",
            ),
            severity="high",
            call=True,
            questions=(
                "¿Puede mover los brazos y las piernas?",
                "¿Siente dolor en el cuello o la espalda?",
                "¿Perdió el conocimiento en algún momento?",
            ),
        ),
    ),
    Rule(
        category="eye_injury",
        triggers=("el ojo", "un ojo", "mi ojo", "los ojos", "mis ojos", "sus ojos", "cuerpo extraño"),
        default=Tier(
            response="¿Hay algo visible flotando en el ojo?",
            instructions=(
                "No frotar el ojo",
                "Intentar parpadear varias veces",
                "Si no se va, enjuagar con agua limpia o suero salino",
                "Si hay dolor fuerte, visión borrosa o sangrado: NO tocar más, cubrir con gasa y llamar a emergencias",
            ),
            severity="medium",
        ),
    ),
    Rule(
        category="nosebleed",
        triggers=("sangrado nasal", "sangra la nariz", "sangre por la nariz", "nariz sangra"),
        default=Tier(
            response="Sangrado nasal identificado.",
            instructions=(
                "Sentar a la persona con la cabeza ligeramente hacia adelante",
                "Apretar la parte blanda de la nariz durante 10 minutos",
                "NO inclinar la cabeza hacia atrás",
                "Si no para en 20 minutos: buscar atención médica",
            ),
            severity="low",
        ),
    ),
    Rule(
        category="broken_tooth",
        triggers=("diente",),
        default=Tier(
            response="Traumatismo dental identificado.",
            instructions=(
                "Enjuagar la boca con agua tibia",
                "Si el diente salió completo, tomarlo por la corona y guardarlo en leche",
                "Presionar con gasa si hay sangrado",
                "Acudir al dentista lo antes posible",
            ),
            severity="low",
        ),
    ),
    Rule(
        category="splinter",
        triggers=("astilla", "espina clavada", "clavé una espina", "pincho"),
        default=Tier(
            response="¿La astilla está parcialmente afuera y es pequeña?",
            instructions=(
                "Lavar la zona con agua y jabón",
                "Usar pinzas limpias para extraerla si está superficial",
                "Lavar nuevamente y cubrir con un apósito",
                "Si está muy profunda, NO intentar extraerla: cubrir y buscar atención médica",
            ),
            severity="low",
        ),
    ),
    Rule(
        category="food_poisoning",
        triggers=("intoxicación", "vómito", "vomit", "diarrea", "comida mala"),
        default=Tier(
            response="¿Hay vómito, diarrea o dolor abdominal leve?",
            instructions=(
                "Hidratar con agua o suero oral en sorbos pequeños",
                "Reposo absoluto",
                "Observar si mejora en pocas horas",
                "Si hay fiebre alta, sangre en el vómito o la diarrea, o dolor intenso: llamar a emergencias",
            ),
            severity="medium",
        ),
    ),
    Rule(
        category="abdominal_pain",
        triggers=("dolor abdominal", "dolor estómago", "dolor de estómago", "dolor barriga", "dolor de barriga"),
        default=Tier(
            response="¿Es un dolor leve, sin fiebre ni vómitos?",
            instructions=(
                "Reposar en posición cómoda",
                "No comer ni beber nada durante 1 hora",
                "Observar si mejora",
                "Si el dolor es agudo y persistente, o hay fiebre o vómito: llamar a emergencias",
            ),
            severity="medium",
        ),
    ),
    Rule(
        category="anxiety",
        triggers=("ansiedad", "pánico", "respiración rápida", "palpitaciones"),
        default=Tier(
            response="¿La persona respira rápido, con miedo o palpitaciones?",
            instructions=(
                "Hablar con voz calmada y tranquilizadora",
                'Guiar la respiración: "Inhala contando hasta 4, exhala contando hasta 4"',
                "Permanecer cerca hasta que se calme",
                "Si hay dolor en el pecho, desmayo o confusión: llamar a emergencias",
            ),
            severity="medium",
        ),
    ),
    Rule(
        category="bite_sting",
        triggers=(
            "picadura", "picó", "mordedura", "mordió", "abeja", "avispa",
            "alacrán", "escorpión", "serpiente", "víbora",
        ),
        tiers=(
            Tier(
                triggers=("serpiente", "víbora", "alacrán", "escorpión"),
                response="EMERGENCIA: Mordedura o picadura de animal venenoso.",
                instructions=(
                    "Mantener a la persona quieta y calmada",
                    "Inmovilizar la extremidad por debajo del nivel del corazón",
                    "Retirar anillos, relojes o ropa ajustada",
                    "NO cortar, succionar ni aplicar torniquete",
                ),
                severity="high",
                call=True,
            ),
        ),
        default=Tier(
            response="Picadura o mordedura leve identificada.",
            instructions=(
                "Retirar el aguijón raspando con una tarjeta, sin apretarlo",
                "Lavar la zona con agua y jabón",
                "Aplicar frío envuelto en un paño",
                "Si aparece hinchazón en la cara o dificultad para respirar: llamar a emergencias",
            ),
            severity="low",
        ),
    ),
    Rule(
        category="sprain",
        triggers=("esguince", "torcí", "torcedura"),
        default=Tier(
            response="Posible esguince identificado.",
            instructions=(
                "Reposar la articulación",
                "Aplicar hielo envuelto en un paño durante 20 minutos",
                "Vendar con compresión suave",
                "Mantener la zona elevada",
            ),
            severity="low",
        ),
    ),
    Rule(
        category="wound",
        triggers=("corte", "corté", "herida", "sangr", "raspadura", "raspón"),
        tiers=(
            Tier(
                triggers=("profund", "no para", "mucho"),
                response="Herida profunda con sangrado importante.",
                instructions=(
                    "Aplicar presión directa sobre la herida con un paño limpio",
                    "Elevar la zona lesionada por encima del corazón si es posible",
                    "NO retirar objetos incrustados en la herida",
                    "Mantener la presión hasta que llegue ayuda médica",
                ),
                severity="high",
                call=True,
            ),
        ),
        default=Tier(
            response="Herida superficial identificada.",
            instructions=(
                "Lavar la herida con agua limpia y jabón",
                "Presionar con gasa limpia hasta que deje de sangrar",
                "Cubrir con un apósito limpio",
                "Vigilar signos de infección en los próximos días",
            ),
            severity="medium",
        ),
    ),
    Rule(
        category="fall_bruise",
        triggers=("caída", "me caí", "se cayó", "golpe", "moretón", "contusión"),
        default=Tier(
            response="Golpe o caída registrada.",
            instructions=(
                "No mover a la persona a menos que esté en peligro inmediato",
                "Evaluar si está consciente y puede mover las extremidades",
                "Inmovilizar la zona lesionada",
                "Aplicar hielo envuelto en un paño sobre la zona afectada",
                "Mantener a la persona calmada y cómoda",
            ),
            severity="medium",
            questions=(
                "¿Puede mover los brazos y las piernas?",
                "¿Siente dolor en el cuello o la espalda?",
                "¿Perdió el conocimiento en algún momento?",
            ),
        ),
    ),
)

DEFAULT_TIER = Tier(
    response="He registrado tu emergencia. Para brindarte la mejor ayuda, necesito más información específica.",
    instructions=(
        "Mantén la calma y respira profundamente",
        "Evalúa si hay peligro inmediato",
        "Describe síntomas específicos: dolor, sangrado, dificultad para respirar",
        "Indica si la persona está consciente y puede hablar",
    ),
    severity="medium",
    questions=(
        "¿Puedes describir más detalles sobre lo que pasó?",
        "¿La persona está consciente?",
        "¿Hay algún sangrado visible?",
    ),
)


def normalize(text: Optional[str]) -> str:
    """NFC-compose, lowercase and collapse whitespace. None and non-strings become ''."""
    if not isinstance(text, str):
        return ""
    return " ".join(unicodedata.normalize("NFC", text).lower().split())


def build_response(tier: Tier, category: Optional[str]) -> EmergencyResponse:
    return EmergencyResponse(
        response_text=tier.response,
        instructions=tier.instructions,
        severity=tier.severity,
        should_call_emergency=tier.call,
        category=category,
        follow_up_questions=tier.questions,
        source="classifier",
    )


def match_rule(text: Optional[str]) -> Optional[Rule]:
    """First rule whose triggers appear in the text, or None."""
    normalized = normalize(text)
    if not normalized:
        return None
    for rule in RULES:
        if rule.matches(normalized):
            return rule
    return None


def classify(text: Optional[str]) -> EmergencyResponse:
    """
    Map free text to an EmergencyResponse. Never raises: empty or unmatched
    input gets the default medium-severity triage response.
    """
    normalized = normalize(text)
    rule = match_rule(normalized)
    if rule is None:
        logger.debug("No emergency rule matched %r", normalized[:80])
        return build_response(DEFAULT_TIER, None)
    tier = rule.pick_tier(normalized)
    logger.debug("Classified as %s (%s)", rule.category, tier.severity)
    return build_response(tier, rule.category)


def classify_follow_up(previous: Iterable[str], new_text: Optional[str]) -> EmergencyResponse:
    """
    Classify a follow-up utterance. If it says nothing recognizable on its own
    ("sí, sigue sangrando"), classify it together with the earlier utterances.
    """
    result = classify(new_text)
    if result.category is not None:
        return result
    earlier = [t for t in previous if isinstance(t, str) and t.strip()]
    if not earlier:
        return result
    return classify(" ".join(earlier + [new_text if isinstance(new_text, str) else ""]))


def default_response() -> EmergencyResponse:
    return build_response(DEFAULT_TIER, None)
