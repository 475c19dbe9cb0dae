from enum import Enum


class ProjectType(str, Enum):
    NOVEL = "novel"
    TRILOGY = "trilogy"
    SERIES = "series"
    SHORT_STORY_COLLECTION = "short_story_collection"
    GRAPHIC_NOVEL = "graphic_novel"
    SCREENPLAY = "screenplay"


class ProjectStatus(str, Enum):
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class Visibility(str, Enum):
    PRIVATE = "private"
    ORGANIZATION = "organization"
    PUBLIC = "public"


class WorkType(str, Enum):
    NOVEL = "novel"
    SHORT_STORY = "short_story"
    NOVELLA = "novella"
    GRAPHIC_NOVEL = "graphic_novel"
    SCREENPLAY = "screenplay"


class PlotPointType(str, Enum):
    INCITING_INCIDENT = "inciting_incident"
    PLOT_POINT_1 = "plot_point_1"
    MIDPOINT = "midpoint"
    PLOT_POINT_2 = "plot_point_2"
    CLIMAX = "climax"
    RESOLUTION = "resolution"
    CUSTOM = "custom"


class PlotPointStatus(str, Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class LoreType(str, Enum):
    CORE_RULE = "core_rule"
    HISTORY = "history"
    CULTURE = "culture"
    MAGIC_SYSTEM = "magic_system"
    TECHNOLOGY = "technology"
    RELIGION = "religion"
    POLITICS = "politics"
    CUSTOM = "custom"


class MemberRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class GraphNodeType(str, Enum):
    STORY_ELEMENT = "story_element"
    CHARACTER = "character"
    LOCATION = "location"
    LORE = "lore"
    PLOT_THREAD = "plot_thread"


class StoryElementType(str, Enum):
    ACT = "act"
    CHAPTER = "chapter"
    SCENE = "scene"
    BEAT = "beat"
    PLOT_POINT = "plot_point"


class ConnectionType(str, Enum):
    STORY_FLOW = "story_flow"
    CHARACTER_ARC = "character_arc"
    SETTING = "setting"
    PLOT_THREAD = "plot_thread"
    THEMATIC = "thematic"
    REFERENCE = "reference"


class AIProviderName(str, Enum):
    OPENROUTER = "openrouter"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"
    GROQ = "groq"
    GEMINI = "gemini"
    COHERE = "cohere"


def enum_values(enum_cls):
    return [member.value for member in enum_cls]
