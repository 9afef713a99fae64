# This file is part of the MapPrint project.
# Copyright (C) 2026 MapPrint contributors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Bounding box helpers. All bboxes are ``(minx, miny, maxx, maxy)`` tuples.
"""


def bbox_tuple(bbox):
    """
    >>> bbox_tuple('20,-30,40,-10')
    (20.0, -30.0, 40.0, -10.0)
    >>> bbox_tuple([20,-30,40,-10])
    (20.0, -30.0, 40.0, -10.0)

    """
    if isinstance(bbox, str):
        bbox = bbox.split(',')
    bbox = tuple(map(float, bbox))
    if len(bbox) != 4:
        raise ValueError('bbox needs four values, got %d' % len(bbox))
    return bbox


def bbox_width(bbox):
    return bbox[2] - bbox[0]


def bbox_height(bbox):
    return bbox[3] - bbox[1]


def bbox_size(bbox):
    return bbox_width(bbox), bbox_height(bbox)


def is_degenerate(bbox):
    """
    >>> is_degenerate((0, 0, 10, 10))
    False
    >>> is_degenerate((0, 10, 10, 10))
    True
    """
    return bbox[0] >= bbox[2] or bbox[1] >= bbox[3]


def bbox_intersects(one, two):
    a_x0, a_y0, a_x1, a_y1 = one
    b_x0, b_y0, b_x1, b_y1 = two

    if (
            a_x0 < b_x1 and
            a_x1 > b_x0 and
            a_y0 < b_y1 and
            a_y1 > b_y0
    ):
        return True

    return False


def bbox_intersection(one, two):
    """
    Returns the intersection of both bboxes or ``None`` if they
    do not overlap. Touching edges do not count as overlap.

    >>> bbox_intersection((0, 0, 10, 10), (5, -5, 20, 5))
    (5, 0, 10, 5)
    >>> bbox_intersection((0, 0, 10, 10), (10, 0, 20, 10)) is None
    True
    """
    if not bbox_intersects(one, two):
        return None
    return (
        max(one[0], two[0]),
        max(one[1], two[1]),
        min(one[2], two[2]),
        min(one[3], two[3]),
    )

