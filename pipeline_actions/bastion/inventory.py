"""Resolve an environment name to its bastion instance."""

import structlog

from pipeline_actions.bastion.exceptions import BastionAmbiguousError, BastionNotFoundError
from pipeline_actions.bastion.models import BastionTarget
from pipeline_actions.configuration.exceptions import RequiredConfigurationElementError
from pipeline_actions.exceptions import CommandOutputError
from pipeline_actions.utils.constants import DEFAULT_BASTION_TAG_SUFFIX
from pipeline_actions.utils.process import run_json_cmd

logger = structlog.get_logger(__name__)


def bastion_tag_value(environment_name: str, tag_suffix: str = DEFAULT_BASTION_TAG_SUFFIX) -> str:
    """Return the Name tag a bastion for `environment_name` carries, e.g. 'dev-github-bastion'."""
    return f"{environment_name}{tag_suffix}"


def describe_running_instances(tag_value: str, region: str | None = None) -> list[str]:
    """Return the IDs of running instances whose Name tag equals `tag_value`."""
    command = [
        "aws",
        "ec2",
        "describe-instances",
        "--filters",
        f"Name=tag:Name,Values={tag_value}",
        "Name=instance-state-name,Values=running",
        "--query",
        "Reservations[].Instances[].InstanceId",
        "--output",
        "json",
    ]
    if region:
        command.extend(["--region", region])
    instance_ids = run_json_cmd(command)
    if not isinstance(instance_ids, list):
        raise CommandOutputError(f"Expected a list of instance IDs, got {type(instance_ids).__name__}")
    return [str(instance_id) for instance_id in instance_ids]


def resolve_bastion(
    environment_name: str,
    region: str | None = None,
    tag_suffix: str = DEFAULT_BASTION_TAG_SUFFIX,
) -> BastionTarget:
    """Resolve `environment_name` to the single running bastion tagged for it.

    A missing or duplicated bastion is a configuration problem, so the lookup
    is never retried.

    Raises:
        RequiredConfigurationElementError: If the environment name is empty.
        BastionNotFoundError: If no running instance matches.
        BastionAmbiguousError: If more than one running instance matches.
    """
    environment_name = environment_name.strip()
    if not environment_name:
        raise RequiredConfigurationElementError("Environment name", "ENVIRONMENT", "BASTION_ENVIRONMENT")

    tag_value = bastion_tag_value(environment_name, tag_suffix)
    logger.info("Looking up bastion instance", environment=environment_name, tag=tag_value, region=region)
    instance_ids = describe_running_instances(tag_value, region=region)

    if not instance_ids:
        raise BastionNotFoundError(f"No running instance tagged Name={tag_value}", environment_name, tag_value)
    if len(instance_ids) > 1:
        raise BastionAmbiguousError(
            f"Found {len(instance_ids)} running instances tagged Name={tag_value}: {', '.join(instance_ids)}",
            environment_name,
            tag_value,
            instance_ids,
        )

    logger.info("Resolved bastion instance", environment=environment_name, instance_id=instance_ids[0])
    return BastionTarget(environment_name=environment_name, instance_id=instance_ids[0])
