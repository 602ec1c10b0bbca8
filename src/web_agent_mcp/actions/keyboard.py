"""Key names and ``Modifier+Key`` combinations mapped onto Selenium keys."""

from typing import List, Tuple

from selenium.webdriver.common.keys import Keys


MODIFIERS = {
    "control": Keys.CONTROL,
    "ctrl": Keys.CONTROL,
    "shift": Keys.SHIFT,
    "alt": Keys.ALT,
    "option": Keys.ALT,
    "meta": Keys.META,
    "command": Keys.COMMAND,
    "cmd": Keys.COMMAND,
}

NAMED_KEYS = {
    "enter": Keys.ENTER,
    "return": Keys.RETURN,
    "tab": Keys.TAB,
    "escape": Keys.ESCAPE,
    "esc": Keys.ESCAPE,
    "backspace": Keys.BACKSPACE,
    "delete": Keys.DELETE,
    "insert": Keys.INSERT,
    "space": Keys.SPACE,
    "home": Keys.HOME,
    "end": Keys.END,
    "pageup": Keys.PAGE_UP,
    "pagedown": Keys.PAGE_DOWN,
    "arrowup": Keys.ARROW_UP,
    "arrowdown": Keys.ARROW_DOWN,
    "arrowleft": Keys.ARROW_LEFT,
    "arrowright": Keys.ARROW_RIGHT,
    "up": Keys.ARROW_UP,
    "down": Keys.ARROW_DOWN,
    "left": Keys.ARROW_LEFT,
    "right": Keys.ARROW_RIGHT,
}
NAMED_KEYS.update({f"f{n}": getattr(Keys, f"F{n}") for n in range(1, 13)})


def key_for(name: str) -> str:
    """Selenium key for a single key name; single characters map to themselves."""
    if len(name) == 1:
        return name
    lowered = name.lower()
    if lowered in NAMED_KEYS:
        return NAMED_KEYS[lowered]
    if lowered in MODIFIERS:
        return MODIFIERS[lowered]
    raise ValueError(f"Unknown key: {name}")


def parse_combo(combo: str) -> Tuple[List[str], str]:
    """
    Split ``"Control+Shift+T"`` into ``([CONTROL, SHIFT], "T")``.

    Modifiers come back in the order given; the caller presses them in that
    order and releases them in reverse. ``"+"`` and ``"Control++"`` address
    the plus key itself.
    """
    if not combo:
        raise ValueError("Key must not be empty")
    if combo == "+":
        parts = ["+"]
    elif combo.endswith("++"):
        parts = combo[:-2].split("+") + ["+"]
    else:
        parts = combo.split("+")
    *modifier_names, main = parts
    if not main:
        raise ValueError(f"Malformed key combination: {combo}")
    modifiers = []
    for name in modifier_names:
        key = MODIFIERS.get(name.lower())
        if key is None:
            raise ValueError(f"{name!r} is not a modifier key in {combo!r}")
        modifiers.append(key)
    return modifiers, key_for(main)
