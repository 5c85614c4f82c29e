"""SPDX YAML format.

The YAML documents use the same property names as the JSON ones.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import yaml

from spdxgraph.codec.json import from_json_dict, to_json_dict
from spdxgraph.codec import Codec
from spdxgraph.error import FormatError
from spdxgraph.version import SchemaVersion

if TYPE_CHECKING:
    from spdxgraph.document import Document


class SPDXYAMLLoader(yaml.SafeLoader):
    """A YAML loader keeping timestamps as strings.

    SPDX dates are stored verbatim in the document; the default resolver
    would turn unquoted ones into datetime objects.
    """


SPDXYAMLLoader.add_constructor(
    "tag:yaml.org,2002:timestamp", SPDXYAMLLoader.construct_yaml_str
)


class YAMLCodec(Codec):
    """Read and write SPDX YAML documents."""

    name = "yaml"
    supported_versions = (SchemaVersion.SPDX_2_2, SchemaVersion.SPDX_2_3)

    def parse(self, data: bytes) -> Document:
        try:
            content = yaml.load(data, Loader=SPDXYAMLLoader)
        except yaml.MarkedYAMLError as err:
            line = err.problem_mark.line + 1 if err.problem_mark is not None else None
            raise FormatError(str(err.problem), origin=self.name, line=line) from err
        except yaml.YAMLError as err:
            raise FormatError(str(err), origin=self.name) from err
        return from_json_dict(content, origin=self.name)

    def render(self, doc: Document) -> bytes:
        return yaml.safe_dump(
            to_json_dict(doc, origin=self.name),
            sort_keys=False,
            allow_unicode=True,
            encoding="utf-8",
        )
