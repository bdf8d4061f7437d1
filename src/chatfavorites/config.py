"""Central configuration for paths and constants."""

import os
from pathlib import Path

# Data directory — override with CHATFAVORITES_DATA_DIR env var
DATA_DIR = Path(
    os.environ.get("CHATFAVORITES_DATA_DIR", str(Path.home() / ".chatfavorites"))
)

# Host configuration file holding every extension's settings
SETTINGS_PATH = DATA_DIR / "settings.json"

# Namespaced key of this extension inside the host configuration
SETTINGS_KEY = "SillyTavernFavorites"
EXTENSION_NAME = "SillyTavern Favorites"

# Stored preview length of a favorited message
PREVIEW_LENGTH = 200

# Seconds between the last save request and the durable write
SAVE_DEBOUNCE_SECONDS = 1.0

# Seconds to wait for the host's own rendering before synchronizing
MESSAGE_RENDER_DELAY = 0.1
CHAT_CHANGED_DELAY = 0.5
CHAT_PICKER_DELAY = 0.1

# Indicator styling
FAVORITE_COLOR = "#ffd700"
