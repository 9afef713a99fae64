import math

from mapprint.util.bbox import bbox_size

# meters per unit for the units supported in print jobs
METERS_PER_UNIT = {
    'm': 1.0,
    'km': 1000.0,
    'cm': 0.01,
    'mm': 0.001,
    'ft': 0.3048,
    'in': 0.0254,
    'yd': 0.9144,
    'mi': 1609.344,
    'nmi': 1852.0,
}

UNIT_ALIASES = {
    'meters': 'm',
    'meter': 'm',
    'metres': 'm',
    'feet': 'ft',
    'foot': 'ft',
    'inches': 'in',
    'degree': 'degrees',
    'dd': 'degrees',
}

INCH_TO_METER = 0.0254
POINTS_PER_INCH = 72.0


def deg_to_m(deg):
    return deg * (6378137 * 2 * math.pi) / 360


def normalize_units(units):
    """
    >>> normalize_units('Meters')
    'm'
    >>> normalize_units('dd')
    'degrees'
    """
    if units is None:
        return None
    units = units.strip().lower()
    return UNIT_ALIASES.get(units, units)


def meters_per_unit(units):
    """
    >>> meters_per_unit('feet')
    0.3048
    >>> round(meters_per_unit('degrees'), 4)
    111319.4908

    :raises ValueError: for unknown units
    """
    units = normalize_units(units)
    if units == 'degrees':
        return deg_to_m(1)
    try:
        return METERS_PER_UNIT[units]
    except KeyError:
        raise ValueError('unknown units %r' % units)


def scale_to_res(scale, dpi, units):
    """
    Ground resolution (units/pixel) for the scale denominator at `dpi`.

    >>> round(scale_to_res(25000, 254, 'm'), 6)
    2.5
    """
    return scale * INCH_TO_METER / dpi / meters_per_unit(units)


def res_to_scale(res, dpi, units):
    """
    >>> round(res_to_scale(2.5, 254, 'm'), 6)
    25000.0
    """
    return res * meters_per_unit(units) * dpi / INCH_TO_METER


def fit_res(bbox, map_size, dpi):
    """
    Ground resolution needed to fit `bbox` into a map block of `map_size`
    points, rendered with `dpi`.

    >>> fit_res((0, 0, 7200, 3600), (720, 720), 72)
    10.0
    """
    px_w = map_size[0] * dpi / POINTS_PER_INCH
    px_h = map_size[1] * dpi / POINTS_PER_INCH
    width, height = bbox_size(bbox)
    return max(width / px_w, height / px_h)


def check_resolutions(res):
    """
    Raise ValueError if `res` is empty, not positive or not strictly decreasing.

    >>> check_resolutions([4.0, 2.0, 1.0])
    >>> check_resolutions([4.0, 4.0, 1.0])
    Traceback (most recent call last):
    ...
    ValueError: resolutions not strictly decreasing at level 1 (4.0 >= 4.0)
    """
    if not res:
        raise ValueError('no resolutions')
    for level, r in enumerate(res):
        if not r > 0:
            raise ValueError('resolution at level %d is not positive (%r)' % (level, r))
        if level and r >= res[level-1]:
            raise ValueError('resolutions not strictly decreasing at level %d (%r >= %r)'
                             % (level, r, res[level-1]))
