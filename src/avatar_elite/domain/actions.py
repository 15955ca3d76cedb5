"""Fixed single-image edit and theme actions."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ImageAction:
    """Menu action applied to the editing subject."""

    key: str
    label: str
    prompt: str


EDIT_ACTIONS: tuple[ImageAction, ...] = (
    ImageAction(
        "remove_bg",
        "✂️ Remove BG",
        "Isolate subject, white background, product photography style",
    ),
    ImageAction(
        "upscale",
        "💎 Upscale 4k",
        "Upscale to 4k resolution, highly detailed, sharp focus, photorealistic",
    ),
    ImageAction(
        "beautify",
        "✨ Beautify",
        "Professional retouching, beauty filter, perfect lighting, enhance features",
    ),
    ImageAction(
        "skin",
        "🧖 Realistic Skin",
        "Hyperrealistic skin texture, visible pores, detailed complexion, "
        "8k photography",
    ),
    ImageAction(
        "outfit",
        "👗 Change Outfit",
        "Change clothing to high fashion elegant outfit, "
        "maintaining character identity",
    ),
)

THEME_ACTIONS: tuple[ImageAction, ...] = (
    ImageAction(
        "gifts",
        "🎁 Add Gifts",
        "Surrounded by colorful christmas gifts, piles of presents, "
        "festive holiday atmosphere",
    ),
    ImageAction(
        "santa",
        "🎅 Santa Outfit",
        "Wearing a high quality Santa Claus costume, red and white fur, "
        "santa hat, festive",
    ),
    ImageAction(
        "home",
        "🏠 Xmas Home",
        "In a cozy christmas living room, decorated christmas tree, fireplace, "
        "warm lighting, stockings",
    ),
    ImageAction(
        "dinner",
        "🍽️ Xmas Dinner",
        "Sitting at a lavish christmas dinner table, roast turkey, candles, "
        "elegant decorations, festive meal",
    ),
    ImageAction(
        "family",
        "👨‍👩‍👧 Family Xmas",
        "Surrounded by happy family members wearing christmas sweaters, "
        "group photo, celebrating holiday",
    ),
    ImageAction(
        "snow",
        "❄️ Snowy Outside",
        "Outdoor winter wonderland, falling snow, snowy trees, "
        "cold festive weather, soft lighting",
    ),
)

DEFAULT_EDIT_PROMPT = "Enhance image"
DEFAULT_THEME_PROMPT = "Christmas theme"


def edit_prompt(key: str) -> str:
    """Return the prompt for an edit action key."""
    for action in EDIT_ACTIONS:
        if action.key == key:
            return action.prompt
    return DEFAULT_EDIT_PROMPT


def theme_prompt(key: str) -> str:
    """Return the prompt for a theme action key."""
    for action in THEME_ACTIONS:
        if action.key == key:
            return action.prompt
    return DEFAULT_THEME_PROMPT
