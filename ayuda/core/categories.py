"""
Emergency categories offered for quick selection (no speech needed).
Each category points at the classifier rule holding its first-aid guidance.
"""
from typing import Dict, List, Optional

from ayuda.core.classifier import RULES, build_response
from ayuda.schemas.category import EmergencyCategory
from ayuda.schemas.emergency import EmergencyResponse


def _sub(parent: str, id: str, title: str, description: str, rule: Optional[str] = None) -> EmergencyCategory:
    return EmergencyCategory(id=id, title=title, description=description, parent_id=parent, rule=rule)


CATEGORIES: List[EmergencyCategory] = [
    EmergencyCategory(id="ojo", title="Ojo", description="Dolor en el ojo", rule="eye_injury"),
    EmergencyCategory(id="dientes_rotos", title="Dientes rotos", description="Traumatismo dental", rule="broken_tooth"),
    EmergencyCategory(
        id="dificultad_para_respirar", title="Dificultad para respirar",
        description="Problemas respiratorios", rule="choking",
    ),
    EmergencyCategory(
        id="quemaduras", title="Quemaduras", description="Lesiones térmicas", rule="burns",
        subcategories=[_sub("quemaduras", "quemaduras_superficial", "Superficial (1er Grado)", "Enrojecimiento", "burns")],
    ),
    EmergencyCategory(
        id="atragantamiento", title="Atragantamiento", description="Obstrucción vía aérea", rule="choking",
        subcategories=[
            _sub("atragantamiento", "atragantamiento_adultos_ninos_mayores", "Adultos niños mayores", "Mayores de 1 año", "choking"),
            _sub("atragantamiento", "atragantamiento_bebes", "Bebés (menor 1 año)", "Lactantes", "choking"),
        ],
    ),
    EmergencyCategory(
        id="rcp", title="RCP", description="Reanimación cardiopulmonar", rule="cardiac_arrest",
        subcategories=[
            _sub("rcp", "rcp_adultos", "Adultos", "Mayores de 8 años", "cardiac_arrest"),
            _sub("rcp", "rcp_ninos", "Niños (1-8)", "Entre 1 y 8 años", "cardiac_arrest"),
            _sub("rcp", "rcp_bebes", "Bebés (menor 1 año)", "Menores de 1 año", "cardiac_arrest"),
        ],
    ),
    EmergencyCategory(id="choque_electrico", title="Choque eléctrico", description="Quemadura eléctrica", rule="electric_shock"),
    EmergencyCategory(id="fracturas", title="Fracturas", description="Huesos rotos", rule="fracture"),
    EmergencyCategory(id="hemorragia", title="Hemorragia", description="Sangrado abundante", rule="severe_bleeding"),
    EmergencyCategory(id="ahogamiento", title="Ahogamiento", description="Inmersión en agua", rule="drowning"),
    EmergencyCategory(id="golpe_en_la_cabeza", title="Golpe en la cabeza", description="Traumatismo craneal", rule="head_injury"),
    EmergencyCategory(id="corte_y_raspadura", title="Corte y raspadura", description="Heridas superficiales", rule="wound"),
    EmergencyCategory(id="esguince", title="Esguince", description="Torcedura de articulación", rule="sprain"),
    EmergencyCategory(
        id="picadura", title="Picadura", description="Insectos", rule="bite_sting",
        subcategories=[_sub("picadura", "picadura_insectos", "Insectos", "Abejas, avispas, etc.", "bite_sting")],
    ),
    EmergencyCategory(id="golpes_y_contusiones", title="Golpes y contusiones", description="Moretones", rule="fall_bruise"),
    EmergencyCategory(id="sangrado_nasal", title="Sangrado nasal", description="Epistaxis", rule="nosebleed"),
    EmergencyCategory(id="insolacion", title="Insolación", description="Golpe de calor", rule="heatstroke"),
    EmergencyCategory(
        id="hipotermia", title="Hipotermia", description="Temperatura corporal baja", rule="hypothermia",
        subcategories=[_sub("hipotermia", "hipotermia_leve", "Leve", "Hipotermia leve", "hypothermia")],
    ),
    EmergencyCategory(id="desmayo", title="Desmayo", description="Pérdida de consciencia", rule="fainting"),
    EmergencyCategory(id="convulsiones", title="Convulsiones", description="Crisis convulsivas", rule="seizure"),
]


def _index(categories: List[EmergencyCategory]) -> Dict[str, EmergencyCategory]:
    out: Dict[str, EmergencyCategory] = {}
    for cat in categories:
        out[cat.id] = cat
        out.update(_index(cat.subcategories))
    return out


_BY_ID = _index(CATEGORIES)
_RULES_BY_KEY = {rule.category: rule for rule in RULES}


def find_category(category_id: str) -> Optional[EmergencyCategory]:
    """Look up a top-level category or subcategory by id."""
    return _BY_ID.get(category_id)


def guidance_for(category: EmergencyCategory) -> Optional[EmergencyResponse]:
    """The classifier's default guidance for the category's rule, if it has one."""
    rule = _RULES_BY_KEY.get(category.rule) if category.rule else None
    if rule is None:
        return None
    return build_response(rule.default, rule.category)
