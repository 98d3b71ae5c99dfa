from mediamodules.core.config.models import ProviderSettings
from mediamodules.core.config.paths import ConfigFsPaths
from mediamodules.core.config.prefs import PrefsStore

__all__ = ["ConfigFsPaths", "PrefsStore", "ProviderSettings"]
