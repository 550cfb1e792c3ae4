from __future__ import annotations

import re
from collections.abc import Mapping
from typing import TYPE_CHECKING

from algokit_utils import AppManager

from . import constants as const
from .errors import DeployTimeControlError
from .models import CompiledCode, DeployMetadata
from .read.algod import AlgodAppReader

if TYPE_CHECKING:  # pragma: no cover
    from algosdk.v2client.algod import AlgodClient

TemplateValue = int | str | bytes
TemplateParams = Mapping[str, TemplateValue]


def _template_token(name: str) -> str:
    if name.startswith(const.TEMPLATE_PREFIX):
        return name
    return const.TEMPLATE_PREFIX + name


def _template_literal(value: TemplateValue) -> str:
    """Render a template value as a TEAL literal."""
    # bool before int: bool is an int subclass.
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return "0x" + value.encode("utf-8").hex()
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    raise TypeError(f"Unsupported template value type: {type(value).__name__}")


def _token_pattern(token: str) -> re.Pattern[str]:
    # TMPL_FOO must not match the head of TMPL_FOO_BAR.
    return re.compile(re.escape(token) + r"(?!\w)")


def _replace_token(teal: str, token: str, literal: str) -> str:
    return _token_pattern(token).sub(lambda _: literal, teal)


def perform_template_substitution(
    teal: str, template_params: TemplateParams | None = None
) -> str:
    """
    Replace `TMPL_<NAME>` placeholders in TEAL code.

    Keys may be given with or without the `TMPL_` prefix. Placeholders without a
    matching key are left untouched.
    """
    if not template_params:
        return teal
    for name, value in template_params.items():
        teal = _replace_token(teal, _template_token(name), _template_literal(value))
    return teal


def replace_deploy_time_control_params(
    teal: str,
    *,
    updatable: bool | None = None,
    deletable: bool | None = None,
) -> str:
    """
    Replace the deploy-time updatability/deletability controls in TEAL code.

    - `TMPL_UPDATABLE` for updatability / immutability control
    - `TMPL_DELETABLE` for deletability / permanence control

    Raises:
        DeployTimeControlError: if a control has a value but its token isn't in the code.
    """
    for token, value, label in (
        (const.UPDATABLE_TEMPLATE_NAME, updatable, "updatability"),
        (const.DELETABLE_TEMPLATE_NAME, deletable, "deletability"),
    ):
        if value is None:
            continue
        if not _token_pattern(token).search(teal):
            raise DeployTimeControlError(
                f"Deploy-time {label} control requested for app deployment, "
                f"but {token} not present in TEAL code"
            )
        teal = _replace_token(teal, token, _template_literal(value))
    return teal


def strip_comments(teal: str) -> str:
    """
    Remove `//` comments from TEAL code, keeping `//` inside string and base64
    literals (`byte "a//b"`, `byte base64 //8=`, `b64(//8=)`).

    Each line is also stripped of surrounding whitespace; the line count is kept.
    """
    return "\n".join(
        AppManager.strip_teal_comments(line).strip() for line in teal.split("\n")
    )


def perform_template_substitution_and_compile(
    algod: AlgodClient,
    teal: str,
    template_params: TemplateParams | None = None,
    deployment_metadata: DeployMetadata | None = None,
) -> CompiledCode:
    """
    Strip comments, substitute template parameters (and deploy-time controls when
    `deployment_metadata` is given) and compile the result through Algod.
    """
    teal = strip_comments(teal)
    teal = perform_template_substitution(teal, template_params)
    if deployment_metadata is not None:
        teal = replace_deploy_time_control_params(
            teal,
            updatable=deployment_metadata.updatable,
            deletable=deployment_metadata.deletable,
        )
    return AlgodAppReader(algod).compile(teal)
