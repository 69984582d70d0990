"""
Tag Classifier: Assign a category tag to an application.

Rules are checked in fixed priority and the first match wins:
1. Bundle identifier patterns (most specific)
2. Display name patterns
3. LSApplicationCategoryType from the descriptor (least reliable)

Apps matching nothing stay untagged.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple

TAG_BROWSERS = "browsers"
TAG_OFFICE = "office"
TAG_UTILITIES = "utilities"
TAG_SOCIAL = "social"
TAG_DEV_TOOLS = "dev-tools"
TAG_CREATIVITY = "creativity"
TAG_ENTERTAINMENT = "entertainment"
TAG_PLANNING = "planning"

# Chrome/Edge web app shortcuts live under the browser's identifier but are
# not browsers themselves.
PWA_MARKERS = (".chrome.app.", ".edge.app.")

# Browser identifiers need segment-aware patterns; "arc" or "edge" as bare
# substrings would catch far too much.
_BROWSER_CONTAINS = (
    ".safari", "safari.",
    ".chrome", "chrome.",
    ".firefox", "mozilla.",
    "torbrowser", "torproject",
    ".brave", "brave.",
    ".opera", "opera.",
    ".vivaldi",
    ".edge", "microsoftedge",
    "dolphin.anty", "dolphinanty",
    ".arc",
    "waterfox", "palemoon", "floorp", "librewolf",
)
_BROWSER_EXACT = ("com.google.chrome", "company.thebrowser.browser")

# ---------------------------------------------------------------------------
# Identifier substring tables (checked in this order)
# ---------------------------------------------------------------------------

_IDENTIFIER_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    (TAG_OFFICE, (
        "google.docs", "google.sheets", "google.slides", "google.gmail",
        "microsoft.word", "microsoft.excel", "microsoft.powerpoint", "microsoft.outlook",
        "libreoffice", "openoffice", "pages", "numbers", "keynote",
        "notion", "obsidian", "evernote", "onenote", "bear", "ulysses",
        "writer", "calc", "impress", "airtable", "coda",
    )),
    (TAG_UTILITIES, (
        "colorsync", "colormeter", "rectangle", "magnet", "bettertouchtool",
        "alfred", "raycast", "spotlight", "cleanmymac", "appcleaner",
        "utm", "virtualbox", "parallels", "diskspeed", "diskutility",
        "1password", "bitwarden", "lastpass", "keepass", "dashlane",
        "bartender", "hazel", "keyboard maestro", "textexpander", "paste",
        "dropzone", "popclip", "clipy", "maccy", "flux", "nightshift",
    )),
    (TAG_SOCIAL, (
        "slack", "discord", "telegram", "whatsapp", "messenger", "signal",
        "zoom", "teams", "skype", "facetime", "meet", "webex",
        "twitter", "tweetbot", "mastodon", "bluesky", "threads",
        "instagram", "facebook", "linkedin", "tiktok", "snapchat",
        "element", "matrix", "irc", "gitter", "rocketchat",
    )),
    (TAG_DEV_TOOLS, (
        "xcode", "vscode", "code", "jetbrains", "intellij", "pycharm", "webstorm",
        "github", "terminal", "iterm", "warp", "alacritty", "kitty",
        "docker", "postman", "insomnia", "paw", "rapidapi",
        "vim", "neovim", "macvim", "emacs", "sublime", "atom",
        "sourcetree", "tower", "gitkraken", "fork", "gitup",
        "dash", "devdocs", "sequel", "tableplus", "postico", "dbeaver",
        "simulator", "charles", "proxyman", "wireshark",
    )),
    (TAG_CREATIVITY, (
        "photoshop", "illustrator", "indesign", "aftereffects", "premiere",
        "lightroom", "bridge", "xd", "dimension", "fresco", "adobe",
        "sketch", "figma", "affinity", "pixelmator", "acorn",
        "inkscape", "gimp", "krita", "blender", "cinema4d",
        "final cut", "davinci", "lumafusion", "compressor", "motion",
        "logic", "garageband", "ableton", "fl studio", "audacity",
        "procreate", "clip studio", "rebelle", "corel", "canva",
    )),
    (TAG_ENTERTAINMENT, (
        "spotify", "music", "itunes", "tidal", "deezer", "soundcloud",
        "vlc", "iina", "quicktime", "plex", "kodi", "infuse",
        "netflix", "youtube", "prime video", "disney", "hulu", "hbo",
        "steam", "epic", "gog", "origin", "uplay", "battlenet",
        "game", "minecraft", "league of legends", "fortnite", "valorant",
        "twitch", "obs", "streamlabs", "parsec",
    )),
    (TAG_PLANNING, (
        "calendar", "fantastical", "busycal", "cron", "morgen",
        "reminders", "todoist", "things", "omnifocus", "taskpaper",
        "notes", "agenda", "craft", "roam", "logseq",
        "trello", "asana", "monday", "clickup", "linear",
        "timery", "toggl", "rescuetime", "timeular", "clockify",
    )),
)

# ---------------------------------------------------------------------------
# Display name substring tables
# ---------------------------------------------------------------------------

_NAME_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    (TAG_BROWSERS, (
        "safari", "chrome", "firefox", "edge", "brave", "tor browser",
        "opera", "arc", "orion", "vivaldi",
    )),
    (TAG_OFFICE, (
        "google docs", "google sheets", "google slides", "gmail", "google drive",
        "microsoft word", "microsoft excel", "microsoft powerpoint", "outlook",
        "pages", "numbers", "keynote", "libreoffice", "notion",
    )),
    (TAG_UTILITIES, (
        "utility", "activity monitor", "console", "disk utility", "finder",
        "system preferences", "system settings", "terminal", "calculator",
    )),
    (TAG_SOCIAL, (
        "mail", "facetime", "messages", "slack", "discord", "zoom",
    )),
    (TAG_PLANNING, (
        "calendar", "reminders", "notes", "todoist", "things",
    )),
    (TAG_CREATIVITY, (
        "photos", "photoshop", "illustrator", "sketch", "figma",
        "final cut", "logic pro",
    )),
)

# LSApplicationCategoryType -> tag
CATEGORY_TAGS: Dict[str, str] = {
    "public.app-category.developer-tools": TAG_DEV_TOOLS,
    "public.app-category.social-networking": TAG_SOCIAL,
    "public.app-category.utilities": TAG_UTILITIES,
    "public.app-category.entertainment": TAG_ENTERTAINMENT,
    "public.app-category.games": TAG_ENTERTAINMENT,
    "public.app-category.music": TAG_ENTERTAINMENT,
    "public.app-category.video": TAG_ENTERTAINMENT,
    "public.app-category.graphics-design": TAG_CREATIVITY,
    "public.app-category.photography": TAG_CREATIVITY,
    "public.app-category.productivity": TAG_PLANNING,
    "public.app-category.business": TAG_PLANNING,
    "public.app-category.finance": TAG_PLANNING,
    "public.app-category.education": TAG_OFFICE,
    "public.app-category.reference": TAG_OFFICE,
}


def is_web_app_shortcut(identifier: str) -> bool:
    lowered = identifier.lower()
    return any(marker in lowered for marker in PWA_MARKERS)


def tag_from_identifier(identifier: str) -> Optional[str]:
    """Tier 1: match the bundle identifier. Web app shortcuts abstain."""
    lowered = identifier.lower()
    if is_web_app_shortcut(lowered):
        return None

    if lowered in _BROWSER_EXACT or any(p in lowered for p in _BROWSER_CONTAINS):
        return TAG_BROWSERS

    for tag, patterns in _IDENTIFIER_RULES:
        if any(p in lowered for p in patterns):
            return tag
    return None


def tag_from_name(name: str) -> Optional[str]:
    """Tier 2: match the display name."""
    lowered = name.lower()
    for tag, patterns in _NAME_RULES:
        if any(p in lowered for p in patterns):
            return tag
    return None


def tag_from_category(fields: Mapping[str, Any]) -> Optional[str]:
    """Tier 3: map the OS-provided category."""
    category = fields.get("LSApplicationCategoryType")
    if not isinstance(category, str):
        return None
    return CATEGORY_TAGS.get(category)


def classify(fields: Mapping[str, Any], identifier: str, name: str) -> List[str]:
    """Return zero or one tag for an app; tiers are never combined."""
    tag = (
        tag_from_identifier(identifier)
        or tag_from_name(name)
        or tag_from_category(fields)
    )
    return [tag] if tag else []
