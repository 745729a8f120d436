"""MarkerMap backend.

Server side of the MarkerMap map-annotation app: KML import from existing
map-marker exports, folder/marker sync, folder sharing between friends,
and image hosting, exposed as Azure Functions HTTP routes.
"""

__version__ = "0.1.0"
