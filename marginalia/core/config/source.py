import functools
import typing as t
from collections.abc import Mapping
from pathlib import Path

import pydantic as p
import yaml
from pydantic_settings import PydanticBaseSettingsSource, SettingsError

from marginalia.model import DeploymentEnvironment

SkipKeys: t.Final[frozenset[str]] = frozenset({"env", "root", "override"})


class CurrentState(t.TypedDict, total=False):
    root: t.Required[p.AnyUrl]
    env: t.Required[DeploymentEnvironment]


class SettingsCurrentState(CurrentState, total=False):
    override: t.Required[tuple[str, ...]]


def merge(base: dict[str, t.Any], overlay: Mapping[str, t.Any]) -> dict[str, t.Any]:
    """A copy of `base` with `overlay` laid over it; nested mappings merge key by key.

    >>> merge({"a": {"x": 1, "y": 2}}, {"a": {"y": 3}, "b": 4})
    {'a': {'x': 1, 'y': 3}, 'b': 4}
    """
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = merge(dict(current), value)
        else:
            merged[key] = value
    return merged


def load_paths(state: CurrentState) -> list[Path]:
    """The config root, then the overlay directory for the current environment."""
    root = state["root"]
    assert root.scheme == "file" and root.path is not None, "root is not a legible location of YAML files"
    env = state["env"]
    paths = [Path(root.path)]
    if env is not DeploymentEnvironment.Local:
        # we don't have a special directory for local/ that's just root
        paths.append(Path(root.path) / "env.d" / env.value)
    return paths


class SettingsSource(PydanticBaseSettingsSource):
    def __call__(self) -> dict[str, t.Any]:
        # we expect init kwargs to have config root and env in them
        data: dict[str, t.Any] = {}

        for field_name, field in self.settings_cls.model_fields.items():
            try:
                field_value, field_key, value_is_complex = self.get_field_value(field, field_name)
                field_value = self.prepare_field_value(field_name, field, field_value, value_is_complex)
            except KeyError:
                continue
            except ValueError as e:
                raise SettingsError(f"error parsing value for field {field_name!r} from source {self!r}") from e

            data[field_key] = field_value
        return data


class OverrideSettingsSource(SettingsSource):
    """Applies `-o dotted.path=value` overrides, parsing each value as YAML."""

    @functools.cached_property
    def parsed_options(self) -> dict[str, t.Any]:
        current_state = t.cast(SettingsCurrentState, self.current_state)
        od: dict[str, t.Any] = {}
        for o in current_state["override"]:
            k, v = [s.strip() for s in o.split("=", 1)]

            target = od
            *path, key = k.split(".")
            for part in path:
                target = target.setdefault(part, {})
            target[key] = yaml.safe_load(v)
        return od

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        current_state = t.cast(SettingsCurrentState, self.current_state)
        if field_name in SkipKeys or field_name not in self.parsed_options:
            raise KeyError(field_name)
        val = current_state.get(field_name)
        if isinstance(val, dict):
            return merge(t.cast(dict[t.Any, t.Any], val), self.parsed_options[field_name]), field_name, True
        return self.parsed_options[field_name], field_name, False

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        return value


class YAMLCascadingSettingsSource(SettingsSource):
    """
    Reads `<field>.yaml` from the config root and from `env.d/<env>/`, with
    the environment's file deep-merged over the root's
    """

    @functools.cached_property
    def load_paths(self) -> list[Path]:
        return load_paths(t.cast(CurrentState, self.current_state))

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        if field_name in SkipKeys:
            raise KeyError(field_name)
        yamls = [fn.read_text(encoding="utf8") for fn in (path / f"{field_name}.yaml" for path in self.load_paths)
                 if fn.exists()]
        if not yamls:
            raise KeyError(field_name)
        return yamls, field_name, True

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        docs = [yaml.safe_load(y) for y in t.cast(list[str], value)]
        merged = docs[0]
        for doc in docs[1:]:
            if isinstance(merged, dict) and isinstance(doc, dict):
                merged = merge(t.cast(dict[t.Any, t.Any], merged), doc)
            else:
                merged = doc
        return merged


class YAMLSecretsSource(SettingsSource):
    """
    Reads a single `secrets.yaml` holding every secret, from the environment
    overlay directory if one exists there, else from the config root
    """

    @functools.cached_property
    def secrets(self) -> dict[str, t.Any]:
        for path in reversed(load_paths(t.cast(CurrentState, self.current_state))):
            fn = path / "secrets.yaml"
            if fn.exists():
                return yaml.safe_load(fn.read_text(encoding="utf8")) or {}
        return {}

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        # checking skip keys first avoids computing self.secrets, which needs
        # current_state["root"], while root itself is being resolved
        if field_name in SkipKeys or field_name not in self.secrets:
            raise KeyError(field_name)
        val = self.secrets[field_name]
        return val, field_name, isinstance(val, dict)

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        return value
