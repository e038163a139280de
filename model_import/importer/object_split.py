"""Split a multi-object source into one asset per object.

For models the unit of splitting is a mesh group, for animations a clip.
Unit 0 stays in the current import. Every other unit becomes an
ExtractionJob writing a sibling asset next to the target:

    "Props.asset" + unit "Level|Crate" -> "Props Crate.asset"

Jobs carry the already parsed model (SharedModelData) so the source file
is not parsed again, and have split_objects switched off so a job can
never split further.

Units whose labels collide get a numeric suffix:
"Props Crate.asset", "Props Crate 2.asset".
"""

import os
import re
import logging
from dataclasses import dataclass, replace
from typing import List, Tuple

from ..asset_format.asset_constants import (
    TYPE_MODEL, TYPE_SKINNED_MODEL, TYPE_ANIMATION, ASSET_EXTENSION,
)

_log = logging.getLogger("model_import.split")

_INVALID_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


@dataclass
class ExtractionJob:
    """A pending sibling import produced by splitting."""
    input_path: str
    output_path: str
    options: object  # ImportOptions
    label: str


def split_label(unit_name):
    """File-name label of a unit: the part after the last '|', sanitized."""
    pos = unit_name.rfind('|')
    if pos != -1:
        unit_name = unit_name[pos + 1:]
    return _INVALID_FILENAME_CHARS.sub('_', unit_name).strip()


def split_output_path(target_path, unit_name):
    """Sibling asset path for a split unit."""
    base, ext = os.path.splitext(target_path)
    return f"{base} {split_label(unit_name)}{ext or ASSET_EXTENSION}"


def _unique_path(path, used):
    """`path`, or `path` with a numeric suffix when it is already taken."""
    base, ext = os.path.splitext(path)
    number = 2
    while path in used:
        path = f"{base} {number}{ext}"
        number += 1
    used.add(path)
    return path


def plan_split_jobs(input_path, target_path, options, data, shared) -> Tuple[object, List[ExtractionJob]]:
    """Turn a split import into a primary import plus extraction jobs.

    Args:
        input_path: source file path
        target_path: asset path of the primary import
        options: ImportOptions with split_objects set
        data: parsed ModelData
        shared: SharedModelData wrapping `data` and its mesh groups

    Returns:
        (primary_options, jobs): options for unit 0 and one job per
        remaining unit, in unit order
    """
    primary = replace(options, split_objects=False, object_index=0)
    jobs = []

    if options.type in (TYPE_MODEL, TYPE_SKINNED_MODEL):
        _log.info("Splitting imported %d meshes", len(shared.groups))
        names = [group.key for group in shared.groups]
    elif options.type == TYPE_ANIMATION:
        _log.info("Splitting imported %d animations", len(data.animations))
        names = [anim.name for anim in data.animations]
    else:
        return options, jobs

    used = {target_path}
    for index in range(1, len(names)):
        wanted = split_output_path(target_path, names[index])
        output_path = _unique_path(wanted, used)
        if output_path != wanted:
            _log.warning("Split object '%s' collides with '%s', writing '%s' instead",
                         names[index], wanted, output_path)
        jobs.append(ExtractionJob(
            input_path=input_path,
            output_path=output_path,
            options=primary.copy_for_split(index, shared),
            label=names[index],
        ))
    return primary, jobs
