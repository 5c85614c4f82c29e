"""Read spdxgraph config file."""
from __future__ import annotations
from dataclasses import fields, dataclass

from typing import TYPE_CHECKING, get_type_hints, ClassVar

import logging
import os

from tomlkit import parse
from tomlkit.exceptions import TOMLKitError
from typeguard import check_type, TypeCheckError

if TYPE_CHECKING:
    from typing import Type, TypeVar

    T = TypeVar("T", bound="ConfigSection")


def known_config_files() -> list[str]:
    """Return the list of configuration files to look for.

    $SPDXGRAPH_CONFIG, when set, replaces the default locations.
    """
    if "SPDXGRAPH_CONFIG" in os.environ:
        return [os.environ["SPDXGRAPH_CONFIG"]]
    return [
        os.path.join(
            os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config")),
            "spdxgraph.toml",
        ),
        os.path.expanduser("~/spdxgraph.toml"),
    ]


@dataclass
class ConfigSection:
    title: ClassVar[str]

    @classmethod
    def load(cls: Type[T]) -> T:
        """Load a section of the configuration file.

        To load a new section, subclass ConfigSection and document the
        fields that you expect to parse, e.g.::

            @dataclass
            class MyConfig(ConfigSection):
                title = "my_config_subsection"
                option : str = "default value"

        my_config = MyConfig.load()

        Each value is checked against the type declared in the dataclass;
        values of the wrong type are reported and the default is kept.
        """
        schema = get_type_hints(cls)
        cls_fields = {f.name: schema[f.name] for f in fields(cls) if f.name != "title"}
        kwargs = {}

        for k, v in Config.load_section(cls.title).items():
            if k in cls_fields:
                ftype = cls_fields[k]
                try:
                    check_type(v, ftype)
                except TypeCheckError as err:
                    logging.error(f"{cls.title}.{k}: {err}")
                else:
                    kwargs[k] = v

        return cls(**kwargs)  # type: ignore


@dataclass
class CodecConfig(ConfigSection):
    title: ClassVar[str] = "codec"

    default_schema_version: str = "SPDX-2.3"
    validate_on_encode: bool = True
    dedupe_derived_relationships: bool = True
    tagvalue_sections: bool = True


class Config:
    """Load spdxgraph configuration file and validate each section.

    This class expose the .load_section(<section>) method that can be used
    by ConfigSection instance corresponding to the loaded configuration
    section after validation.
    """

    data: ClassVar[dict] = {}

    @classmethod
    def load_section(cls, section: str) -> dict:
        """Load a configuration section content.

        :param section: if contains "." nested subsection will be found. For
            instance "log.fmt" will return the section:

            [log]
              [log.fmt]
        :return: the configuration dict
        """
        if not cls.data:
            cls.load()

        subsections = section.split(".")
        result = cls.data
        for subsection in subsections:
            result = result.get(subsection, {})

        return result

    @classmethod
    def load_file(cls, filename: str) -> None:
        """Load a configuration file.

        :param filename: configuration file to load
        """
        with open(filename) as f:
            try:
                cls.data.update(parse(f.read()))
            except TOMLKitError as e:
                logging.error(str(e))

    @classmethod
    def load(cls) -> None:
        """Load the configuration file(s).

        Note that this method is automatically loaded the first time
        .load_section() is called.
        """
        for config_file in known_config_files():
            if os.path.isfile(config_file):
                cls.load_file(config_file)


def codec_config() -> CodecConfig:
    """Return the [codec] section of the configuration."""
    return CodecConfig.load()
