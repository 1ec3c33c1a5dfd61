# Copyright 2025 icecake0141
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# This file was created or modified with the assistance of an AI (Large Language Model).
# Review required for correctness, security, and licensing.

"""
Pipeline state collaborator.

``PipelineAPI`` is the only thing the dashboard needs from the cloud side:
list pipeline names and fetch the current state of one pipeline.
``CodePipelineClient`` implements it on top of boto3.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

UNKNOWN_STATUS = "Unknown"


class RemoteError(RuntimeError):
    """Raised when listing or polling pipelines fails."""


@dataclass(frozen=True)
class StageState:
    """Snapshot of one stage's latest execution."""

    name: str
    status: str
    last_status_change: Optional[datetime] = None
    action_name: Optional[str] = None


@dataclass(frozen=True)
class PipelineState:
    """Ordered stage snapshots of one pipeline, fetched fresh on every poll."""

    name: str
    stages: Tuple[StageState, ...] = ()
    updated: Optional[datetime] = None


class PipelineAPI(Protocol):
    """The two remote operations the dashboard depends on."""

    def list_pipeline_names(self) -> List[str]:
        ...

    def get_pipeline_state(self, name: str) -> PipelineState:
        ...


def parse_stage_state(raw: Mapping[str, Any]) -> StageState:
    """
    Build a StageState from one entry of a ``stageStates`` list.

    The stage takes the status of its first action. Stages whose first action
    never ran fall back to the stage-level execution status, then to Unknown.
    """
    name = str(raw.get("stageName", "?"))
    actions = raw.get("actionStates") or []
    first_action: Mapping[str, Any] = actions[0] if actions else {}
    latest = first_action.get("latestExecution") or {}
    status = latest.get("status")
    changed = latest.get("lastStatusChange")
    if not status:
        status = (raw.get("latestExecution") or {}).get("status") or UNKNOWN_STATUS
    return StageState(
        name=name,
        status=str(status),
        last_status_change=changed if isinstance(changed, datetime) else None,
        action_name=first_action.get("actionName"),
    )


def parse_pipeline_state(response: Mapping[str, Any], name: Optional[str] = None) -> PipelineState:
    """Convert a ``get_pipeline_state`` response into a PipelineState."""
    stages = tuple(parse_stage_state(raw) for raw in response.get("stageStates") or [])
    updated = response.get("updated")
    return PipelineState(
        name=str(response.get("pipelineName") or name or ""),
        stages=stages,
        updated=updated if isinstance(updated, datetime) else None,
    )


class CodePipelineClient:
    """
    PipelineAPI backed by the AWS CodePipeline service.

    Credentials and region resolution are left to boto3; ``profile`` and
    ``region`` only override what the environment would pick.
    """

    def __init__(self, client: Any = None, profile: Optional[str] = None, region: Optional[str] = None) -> None:
        if client is None:
            try:
                session = boto3.session.Session(profile_name=profile, region_name=region)
                client = session.client("codepipeline")
            except (BotoCoreError, ClientError) as exc:
                raise RemoteError(f"Cannot create CodePipeline client: {exc}") from exc
        self.client = client

    def list_pipeline_names(self) -> List[str]:
        """Return every pipeline name, following pagination."""
        names: List[str] = []
        try:
            paginator = self.client.get_paginator("list_pipelines")
            for page in paginator.paginate():
                for summary in page.get("pipelines") or []:
                    names.append(summary["name"])
        except (BotoCoreError, ClientError) as exc:
            raise RemoteError(f"Cannot list pipelines: {exc}") from exc
        logger.debug("Listed %d pipeline(s)", len(names))
        return names

    def get_pipeline_state(self, name: str) -> PipelineState:
        """Fetch the current state of pipeline ``name``."""
        try:
            response: Dict[str, Any] = self.client.get_pipeline_state(name=name)
        except (BotoCoreError, ClientError) as exc:
            raise RemoteError(f"Cannot fetch state of pipeline '{name}': {exc}") from exc
        return parse_pipeline_state(response, name)
