"""Jinja2 environments for text rendered from templates."""

from __future__ import annotations

import typing as t
from pathlib import Path

import jinja2
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Object, Provider, ThreadSafeSingleton

import marginalia.lib.json


def _blank_none(value: t.Any) -> t.Any:
    return "" if value is None else value


def provide_prompt_env(template_path: str, root: Path) -> jinja2.Environment:
    """Environment for LLM prompt templates.

    Prompts are plain text: nothing is escaped, block tags leave no blank
    lines behind and a None renders as nothing.
    """
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(root / template_path),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        finalize=_blank_none,
    )
    env.policies["json.dumps_function"] = marginalia.lib.json.dumps
    return env


class TemplateContainer(DeclarativeContainer):
    config: Configuration = Configuration(strict=True)
    root: Provider[t.Any] = Object()

    llm: Provider[jinja2.Environment] = ThreadSafeSingleton(
        provide_prompt_env, template_path=config.llm_path, root=root
    )
