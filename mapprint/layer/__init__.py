"""
Print layer variants.

Every layer implements the `PrintLayer` protocol. The printer only talks
to this protocol, new variants are added with `register_layer_type`.
"""
from typing import Protocol, Callable, Dict, Iterable, Optional, Tuple

from mapprint.exception import LayerConfigurationError
from mapprint.grid import TileRequest
from mapprint.srs import SRS

import logging
log = logging.getLogger('mapprint.config')


class PrintLayer(Protocol):
    name: str
    opacity: float

    def tile_requests(self, geometry) -> Tuple[Optional[int], Iterable[TileRequest]]:
        """
        Return the pyramid level and the (lazy) requests for all tiles that
        intersect the page of `geometry`. No requests if nothing intersects.
        """
        ...

    def tile_bbox(self, request: TileRequest) -> Tuple[float, float, float, float]:
        ...

    def fetch_tile(self, request: TileRequest, headers=None, timeout=None):
        """
        Retrieve the tile image as an `ImageSource`.
        """
        ...


LayerFactory = Callable[..., PrintLayer]

layer_types: Dict[str, LayerFactory] = {}


def register_layer_type(type_name: str, factory: LayerFactory) -> None:
    """
    Register `factory` for layer descriptors with ``type: type_name``.
    The factory is called with the layer descriptor and the keyword
    arguments ``name``, ``job_srs`` and ``http_client``.
    """
    layer_types[type_name.lower()] = factory


def create_layer(conf: dict, name: str, job_srs=None, http_client=None) -> PrintLayer:
    type_name = conf.get('type')
    if not type_name:
        raise LayerConfigurationError('missing layer type', layer=name)
    try:
        factory = layer_types[type_name.lower()]
    except KeyError:
        raise LayerConfigurationError('unknown layer type %r (supported: %s)' % (
            type_name, ', '.join(sorted(layer_types))), layer=name)
    return factory(conf, name=name, job_srs=job_srs, http_client=http_client)


def check_layer_srs(conf: dict, name: str, job_srs):
    """
    Raise `LayerConfigurationError` if the layer declares an SRS that
    differs from the `job_srs`. Layers are never reprojected.
    """
    layer_srs = conf.get('srs')
    if layer_srs is None or job_srs is None:
        return
    try:
        layer_srs = SRS(layer_srs)
    except ValueError as ex:
        raise LayerConfigurationError(str(ex), layer=name)
    if layer_srs != job_srs:
        raise LayerConfigurationError('layer SRS %s does not match job SRS %s' % (
            layer_srs.srs_code, job_srs.srs_code), layer=name)


def check_opacity(conf: dict, name: str) -> float:
    opacity = conf.get('opacity', 1.0)
    try:
        opacity = float(opacity)
    except (TypeError, ValueError):
        raise LayerConfigurationError('invalid opacity %r' % (opacity, ), layer=name)
    if not 0.0 <= opacity <= 1.0:
        raise LayerConfigurationError('opacity must be between 0 and 1, got %r' % (opacity, ),
                                      layer=name)
    return opacity


def _register_default_types():
    from mapprint.layer.tile_layer import tile_layer_factory
    from mapprint.layer.image_layer import image_layer_factory

    for type_name in ('OSM', 'XYZ', 'TMS', 'WMTS', 'Tiles'):
        register_layer_type(type_name, tile_layer_factory)
    register_layer_type('image', image_layer_factory)


_register_default_types()
