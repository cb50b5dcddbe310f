# ==============================================================================
# RESOURCE TAXONOMY MODULE
# ==============================================================================
# Classifies numeric resource type codes into named categories.
#
# Categories:
#   - StructuredData: SimData resources (binary or XML)
#   - StringTable:    Localized string tables
#   - Tuning:         XML tuning, one category per tuning class
#   - Image:          DDS / DST / PNG images
#   - RawBinary:      Other known binary resources (models, rigs, etc.)
#   - Unsupported:    Anything not in the tables below
#
# The tables are closed and static. Unknown codes are never an error, they
# simply classify as Unsupported so that a conversion never aborts on an
# unrecognized resource.
#
# Usage:
#   category = classify(key)
#   if category.kind == CategoryKind.TUNING:
#       print(category.name)   # e.g. 'Buff'
# ==============================================================================

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from .keys import ResourceKey


# ==============================================================================
# TYPE CODES
# ==============================================================================

SIMDATA_TYPE = 0x545AC67A
STRING_TABLE_TYPE = 0x220557DA
GENERIC_TUNING_TYPE = 0x03B33DDF

DDS_IMAGE_TYPE = 0x00B2D882
DST_IMAGE_TYPE = 0x00B00000
PNG_IMAGE_TYPE = 0x2F7D0004

IMAGE_TYPES: Dict[int, str] = {
    DDS_IMAGE_TYPE: "DdsImage",
    DST_IMAGE_TYPE: "DstImage",
    PNG_IMAGE_TYPE: "PngImage",
}

# Known binary resources that are copied through as-is
BINARY_TYPES: Dict[int, str] = {
    0x62E94D38: "CombinedTuning",
    0xC0DB5AE7: "ObjectDefinition",
    0x319E4F1D: "ObjectCatalog",
    0x034AEECB: "CasPart",
    0x015A1849: "Geometry",
    0x01661233: "Model",
    0x01D10F34: "ModelLod",
    0x8EAF13DE: "Rig",
    0xD3044521: "Slot",
    0xD382BF57: "Footprint",
    0x03B4C61D: "Light",
    0x6B20C4F3: "Clip",
    0xBC4A5044: "ClipHeader",
    0x3453CF95: "Rle2Image",
    0xBA856C78: "RlesImage",
    0x3C1AF1F2: "CasPartThumbnail",
    0x3C2A8647: "BuildBuyThumbnail",
    0xAC16FBEC: "RegionMap",
}

# Instance tuning classes and their resource types
TUNING_TYPES: Dict[str, int] = {
    "Tuning": GENERIC_TUNING_TYPE,
    "Snippet": 0x7DF2169C,
    "Posture": 0xAD6FDF1F,
    "SlotType": 0x69A5DAA4,
    "StaticCommodity": 0x51077643,
    "RelationshipBit": 0x0904DF10,
    "ObjectState": 0x5B02819E,
    "Recipe": 0xEB97F823,
    "GameRuleset": 0xE1477E18,
    "Statistic": 0x339BC5BD,
    "Mood": 0xBA7B60B8,
    "Buff": 0x6017E896,
    "Trait": 0xCB5FDDC7,
    "SlotTypeSet": 0x3F163505,
    "PieMenuCategory": 0x03E9D964,
    "Aspiration": 0x28B64675,
    "AspirationCategory": 0xE350DBD8,
    "AspirationTrack": 0xC020FCAD,
    "Objective": 0x0069453E,
    "Tutorial": 0xE04A24A3,
    "TutorialTip": 0x8FB3E0B1,
    "Career": 0x73996BEB,
    "Interaction": 0xE882D22F,
    "Achievement": 0x78559E9E,
    "AchievementCategory": 0x2451C101,
    "AchievementCollection": 0x04D2B465,
    "ServiceNpc": 0x9CC21262,
    "Venue": 0xE6BBD7DE,
    "Reward": 0x6FA49828,
    "TestBasedScore": 0x4F739CEE,
    "LotTuning": 0xD8800D66,
    "Region": 0x51E7A18D,
    "Street": 0xF6E4CB00,
    "WalkBy": 0x3FD6243E,
    "Object": 0xB61DE6B4,
    "Animation": 0xEE17C6AD,
    "Balloon": 0xEC6A8FC6,
    "Action": 0x0C772E27,
    "ObjectPart": 0x7147A350,
    "Situation": 0xFBC3AEEB,
    "SituationJob": 0x9C07855F,
    "SituationGoal": 0x598F28E7,
    "SituationGoalSet": 0x9DF2F1F2,
    "Strategy": 0x6224C9D6,
    "SimFilter": 0x6E0DDA9F,
    "Topic": 0x738E6C56,
    "SimTemplate": 0x0CA4C78B,
    "Subroot": 0xB7FF8F95,
    "SocialGroup": 0x2E47A104,
    "TagSet": 0x49395302,
    "TemplateChooser": 0x48C2D5ED,
    "ZoneDirector": 0xF958A092,
    "RoleState": 0x0E4D15FB,
    "CareerLevel": 0x2C70ADF8,
    "CareerTrack": 0x48C75CE3,
    "CareerEvent": 0x94420322,
    "Broadcaster": 0xDEBAFB73,
    "AwayAction": 0xAFADAC48,
    "Royalty": 0x37EF2EE7,
    "NotebookEntry": 0x9902FA76,
    "DetectiveClue": 0x537449F6,
    "BucksPerk": 0xEC3DA10E,
    "StoryProgressionAction": 0xBE04173A,
    "ClubSeed": 0x2F59B437,
    "ClubInteractionGroup": 0xFA0FFA34,
    "DramaNode": 0x2553F435,
    "Ensemble": 0xB9881120,
    "Business": 0x75D807F3,
    "OpenStreetDirector": 0x4B6FDEC4,
    "ZoneModifier": 0x3C1D8799,
    "UserInterfaceInfo": 0xB8BF1A63,
    "CallToAction": 0xF537B2E0,
    "Sickness": 0xC3FBD8DE,
    "Breed": 0x341D3F25,
    "CasMenuItem": 0x0CBA50F4,
    "CasMenu": 0x935A83C2,
    "RelationshipLock": 0xAE34E673,
    "HouseholdMilestone": 0x3972E6F3,
    "ConditionalLayer": 0x9183DC91,
    "Season": 0xC98DD45E,
    "HolidayDefinition": 0x0E316F6D,
    "HolidayTradition": 0x3FCD2486,
    "WeatherEvent": 0x5806F5BA,
    "WeatherForecast": 0x497F3271,
    "LotDecoration": 0xFE2DB1AB,
    "LotDecorationPreset": 0xDE1EF8FB,
    "CareerGig": 0xCCDB0EDD,
    "Headline": 0xF401205D,
    "RabbitHole": 0xB16AD2FA,
    "Narrative": 0x3E753C39,
    "Spell": 0x1F3413D9,
    "CasStoriesQuestion": 0x03246B9D,
    "CasStoriesAnswer": 0x80F12D17,
    "CasStoriesTraitChooser": 0x8DAD1549,
}

# Reverse lookup: type code -> class name
TUNING_TYPE_NAMES: Dict[int, str] = {code: name for name, code in TUNING_TYPES.items()}

# Lowercase / snake_case lookup so both c="Buff" and i="buff" resolve
_TUNING_LOOKUP: Dict[str, int] = {}
for _name, _code in TUNING_TYPES.items():
    _TUNING_LOOKUP[_name.lower()] = _code
    _snake = "".join(("_" + ch.lower()) if ch.isupper() else ch for ch in _name).lstrip("_")
    _TUNING_LOOKUP[_snake] = _code

# SimData groups that get a named subfolder
SIMDATA_GROUPS: Dict[int, str] = {
    0x0017E8F6: "Buff",
    0x00CB5FDD: "Trait",
}


# ==============================================================================
# INSTANCE ID BIT WIDTHS
# ==============================================================================
# Some tuning classes live in a narrowed id-space: the engine only reads the
# low N bits of the instance. Everything else uses the full 64 bits.

FULL_BIT_WIDTH = 64

DEFAULT_CLASS_BIT_WIDTHS: Dict[str, int] = {
    "Trait": 32,
    "Statistic": 32,
    "Commodity": 32,
    "Skill": 32,
    "RankedStatistic": 32,
    "StaticCommodity": 32,
    "RelationshipTrack": 32,
    "LifeSkillStatistic": 32,
    "Career": 32,
    "CareerTrack": 32,
}


def bit_width_for_class(class_name: Optional[str],
                        overrides: Optional[Dict[str, int]] = None) -> int:
    """
    Get the number of valid low bits for instance ids of a tuning class.

    Args:
        class_name: Tuning class (the root element's c attribute)
        overrides: Optional class -> width table that extends/replaces defaults

    Returns:
        Bit width, or 64 when the class has no narrowed id-space
    """
    if not class_name:
        return FULL_BIT_WIDTH
    if overrides and class_name in overrides:
        return int(overrides[class_name])
    return DEFAULT_CLASS_BIT_WIDTHS.get(class_name, FULL_BIT_WIDTH)


# ==============================================================================
# CATEGORY MODEL
# ==============================================================================

class CategoryKind(Enum):
    STRUCTURED_DATA = "StructuredData"
    STRING_TABLE = "StringTable"
    TUNING = "Tuning"
    IMAGE = "Image"
    RAW_BINARY = "RawBinary"
    UNSUPPORTED = "Unsupported"


# Categories whose payloads are expected to decode. A raw fallback for these
# means the payload is probably corrupt.
STRUCTURED_KINDS = (CategoryKind.STRUCTURED_DATA, CategoryKind.STRING_TABLE, CategoryKind.TUNING)


@dataclass(frozen=True)
class ResourceCategory:
    """
    Derived classification of a resource key.

    Attributes:
        kind (CategoryKind): Which variant this is
        type_code (int):     The classified type code
        name (str):          Class name (Tuning), type name (Image/RawBinary),
                             SimData group name (StructuredData, may be None)
    """
    kind: CategoryKind
    type_code: int
    name: Optional[str] = None

    @property
    def is_structured(self) -> bool:
        return self.kind in STRUCTURED_KINDS


def classify(key: ResourceKey) -> ResourceCategory:
    """
    Classify a key by its type (and, for SimData, its group).

    Never raises; unknown types become Unsupported.

    Example:
        >>> classify(ResourceKey(0x6017E896, 0, 1)).name
        'Buff'
    """
    if key.type == STRING_TABLE_TYPE:
        return ResourceCategory(CategoryKind.STRING_TABLE, key.type, "StringTable")
    if key.type == SIMDATA_TYPE:
        return ResourceCategory(CategoryKind.STRUCTURED_DATA, key.type,
                                SIMDATA_GROUPS.get(key.group))
    if key.type in TUNING_TYPE_NAMES:
        return ResourceCategory(CategoryKind.TUNING, key.type, TUNING_TYPE_NAMES[key.type])
    if key.type in IMAGE_TYPES:
        return ResourceCategory(CategoryKind.IMAGE, key.type, IMAGE_TYPES[key.type])
    if key.type in BINARY_TYPES:
        return ResourceCategory(CategoryKind.RAW_BINARY, key.type, BINARY_TYPES[key.type])
    return ResourceCategory(CategoryKind.UNSUPPORTED, key.type)


def is_tuning_type(type_code: int) -> bool:
    """Check whether a type code is an XML tuning type."""
    return type_code in TUNING_TYPE_NAMES


def tuning_type_for_name(name: Optional[str]) -> Optional[int]:
    """
    Look up a tuning type from a class or instance-type attribute.

    Accepts CamelCase ('SituationJob') and snake_case ('situation_job').
    """
    if not name:
        return None
    return _TUNING_LOOKUP.get(name.strip().lower())


def type_name(type_code: int) -> Optional[str]:
    """Human-readable name for any known type code."""
    if type_code == STRING_TABLE_TYPE:
        return "StringTable"
    if type_code == SIMDATA_TYPE:
        return "SimData"
    return (TUNING_TYPE_NAMES.get(type_code)
            or IMAGE_TYPES.get(type_code)
            or BINARY_TYPES.get(type_code))
