"""
Persona defaults and reconciliation.
merge_persona applies explicit per-field rules instead of a blind dict update, so a field
added to Persona later is filled from the baseline rather than dropped:
- scalars: saved value unless missing/None
- lists: saved list unless missing/None (an empty saved list is kept)
- visual_attributes: merged attribute by attribute
- visual_identity_initialized: saved unless None
- face_descriptor_block: saved unless missing/empty
A saved field that fails validation falls back to the baseline value for that field only.
"""
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from studio.logging_config import get_logger
from studio.schemas.persona import LocationStyle, Persona, VisualAttributes

logger = get_logger(__name__)


class VisualIdentityLocked(ValueError):
    """Raised when a locked face descriptor would be changed."""

    def __init__(self) -> None:
        super().__init__("visual_identity_locked")


def baseline_persona(name: Optional[str] = None) -> Persona:
    """Default persona for a first-ever load, optionally seeded with the influencer's name."""
    persona = Persona(
        name="Aria",
        age=24,
        gender_expression="Female, Modern Chic",
        personality_traits=["Witty", "Tech-savvy", "Optimistic", "Relatable"],
        communication_tone="Conversational, Hinglish accents, engaging, uses minimal but impactful emojis.",
        visual_aesthetics="Warm tones, golden hour, modern Indian urban, clean lines.",
        visual_attributes=VisualAttributes(
            gender="Female",
            ethnicity="Indian",
            age_range="24-26",
            face_shape="Oval",
            eyes="Dark brown, almond-shaped",
            nose="Straight",
            lips="Full, natural",
            hair="Dark brown wavy hair, shoulder length",
            body="Slim, athletic build, 5'6\"",
            distinguishing_features="Small nose stud, expressive eyebrows",
        ),
        base_city="Mumbai",
        country="India",
        location_style=LocationStyle.MIXED,
        preferred_location_types=["Bandra cafes", "South Bombay heritage", "modern coworking", "home studio", "Marine Drive"],
        dos=["Focus on Indian lifestyle", "Show tech/work setups", "Engage with followers"],
        donts=["Be political", "Use offensive language", "Promote gambling"],
        target_audience="Gen Z & Millennials in India interested in Tech and Lifestyle",
        visual_identity_initialized=False,
        visual_reference_images=[],
        face_descriptor_block="",
    )
    if name:
        persona = persona.model_copy(update={"name": name})
    return persona


def _saved_value(saved: Mapping[str, Any], field_name: str) -> Any:
    """Look up a field by camelCase alias first, then snake_case."""
    alias = Persona.model_fields[field_name].alias or field_name
    if alias in saved:
        return saved[alias]
    return saved.get(field_name)


def _merge_visual_attributes(base: VisualAttributes, saved: Any) -> Dict[str, Any]:
    merged = base.model_dump()
    if not isinstance(saved, Mapping):
        return merged
    for field_name, info in VisualAttributes.model_fields.items():
        alias = info.alias or field_name
        value = saved.get(alias, saved.get(field_name))
        if value is not None:
            merged[field_name] = value
    return merged


def _reconcile_fields(base: Persona, saved: Mapping[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    for field_name in Persona.model_fields:
        base_value = getattr(base, field_name)
        value = _saved_value(saved, field_name)
        if field_name == "visual_attributes":
            merged[field_name] = _merge_visual_attributes(base_value, value)
        elif field_name == "face_descriptor_block":
            merged[field_name] = value if value else base_value
        elif value is None:
            merged[field_name] = base_value
        else:
            merged[field_name] = value
    return merged


def merge_persona(base: Persona, saved: Optional[Mapping[str, Any]]) -> Persona:
    """Reconcile a saved (possibly partial or outdated) persona record with the baseline."""
    if not isinstance(saved, Mapping):
        return base.model_copy(deep=True)
    merged = _reconcile_fields(base, saved)
    try:
        return Persona.model_validate(merged)
    except ValidationError as e:
        # Error locations use the camelCase alias.
        by_alias = {(info.alias or name): name for name, info in Persona.model_fields.items()}
        bad_fields = set()
        for err in e.errors():
            loc = err.get("loc") or ()
            if loc:
                bad_fields.add(by_alias.get(str(loc[0]), str(loc[0])))
        logger.warning("persona.merge_invalid_fields", fields=sorted(bad_fields))
        for field_name in bad_fields:
            if field_name == "visual_attributes":
                merged[field_name] = base.visual_attributes.model_dump()
            elif field_name in Persona.model_fields:
                merged[field_name] = getattr(base, field_name)
        return Persona.model_validate(merged)


def lock_visual_identity(persona: Persona, descriptor: str, reference_images: Optional[List[str]] = None) -> Persona:
    """Set the face descriptor once; a persona already locked keeps its block."""
    if persona.visual_identity_initialized and persona.face_descriptor_block:
        raise VisualIdentityLocked()
    if not descriptor.strip():
        raise ValueError("face_descriptor_empty")
    update: Dict[str, Any] = {
        "face_descriptor_block": descriptor.strip(),
        "visual_identity_initialized": True,
    }
    if reference_images is not None:
        update["visual_reference_images"] = list(reference_images)
    return persona.model_copy(update=update)


def ensure_identity_unchanged(current: Persona, updated: Persona) -> None:
    """Raise VisualIdentityLocked if updated would alter a locked identity."""
    if not (current.visual_identity_initialized and current.face_descriptor_block):
        return
    if (
        updated.face_descriptor_block != current.face_descriptor_block
        or not updated.visual_identity_initialized
    ):
        raise VisualIdentityLocked()
