"""
Component factory for the higcorpus pipeline.

Registries map the ``type`` strings of a pipeline configuration (e.g.
'local_files') to the component classes, so sources, sinks and state
backends can be swapped through configuration alone.
"""

import logging
from ..components.sources import LocalFileSource, BundleSource, WebBundleSource, S3Source
from ..components.sinks import MarkdownDirectorySink, BundleSink, S3Sink
from ..utils.state_manager import JSONStateManager, RedisStateManager

logger = logging.getLogger(__name__)

# A registry mapping 'type' strings to their corresponding Source classes.
SOURCE_REGISTRY = {
    "local_files": LocalFileSource,
    "bundle": BundleSource,
    "web": WebBundleSource,
    "s3": S3Source,
}

# A registry mapping 'type' strings to their corresponding Sink classes.
SINK_REGISTRY = {
    "markdown_directory": MarkdownDirectorySink,
    "bundle": BundleSink,
    "s3": S3Sink,
}

# A registry mapping 'type' strings to their corresponding state backends.
STATE_REGISTRY = {"json": JSONStateManager, "redis": RedisStateManager}


def build_component(component_config: dict, registry: dict):
    """
    Builds a component instance from a configuration dictionary and a registry.

    Args:
        component_config (dict): The component's configuration dictionary,
            expected to have 'type' and 'config' keys.
        registry (dict): The registry (e.g., SOURCE_REGISTRY) to look up the
            component class.

    Returns:
        An instance of the component class.

    Raises:
        ValueError: If the 'type' is not specified in the config or if the
            type is not found in the registry.
    """
    component_type = component_config.get("type", "")
    config = component_config.get("config") or {}

    if not component_type:
        raise ValueError("Component 'type' not specified in configuration.")

    component_class = registry.get(component_type)
    if not component_class:
        raise ValueError(f"'{component_type}' is not a valid component type.")

    logger.debug(f"Building component '{component_class.__name__}' with config: {config}")
    return component_class(**config)
