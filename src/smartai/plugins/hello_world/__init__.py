"""Bundled example plugin.

See Also:
    :class:`~smartai.plugins.hello_world.plugin.HelloWorldPlugin`
"""

from smartai.plugins.hello_world.plugin import HelloWorldPlugin

__all__ = ["HelloWorldPlugin"]
