"""Project settings. There is no need to edit this file unless you want to
change values from the Kedro defaults.
"""

from kedro.config import OmegaConfigLoader

from storm_impact.hooks import EventTypeReferenceHooks

HOOKS = (EventTypeReferenceHooks(),)

CONFIG_LOADER_CLASS = OmegaConfigLoader
CONFIG_LOADER_ARGS = {
    "base_env": "base",
    "default_run_env": "local",
}
