"""Static table of nested block types per Terraform resource kind.

Plan JSON does not distinguish a nested block from an attribute holding an object
or a list of objects. A key listed here (under its kind, or under its parent
block for deeper nesting) is read as a block collection; every other key stays a
plain attribute. Names must match the block names the check catalog reads;
:meth:`wa_review.engine.CheckRegistry.unmapped_blocks` reports drift at startup.
"""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

BlockTree = Mapping[str, "BlockTree"]

_LEAF: BlockTree = {}

_S3_SSE_RULE: BlockTree = {"rule": {"apply_server_side_encryption_by_default": _LEAF}}
_INGRESS_EGRESS: BlockTree = {"ingress": _LEAF, "egress": _LEAF}

BLOCK_TYPES: Mapping[str, BlockTree] = {
    "aws_s3_bucket": {
        "server_side_encryption_configuration": _S3_SSE_RULE,
        "versioning": _LEAF,
        "logging": _LEAF,
        "website": _LEAF,
        "cors_rule": _LEAF,
        "grant": _LEAF,
        "lifecycle_rule": {
            "expiration": _LEAF,
            "transition": _LEAF,
            "noncurrent_version_expiration": _LEAF,
            "noncurrent_version_transition": _LEAF,
        },
        "object_lock_configuration": {"rule": {"default_retention": _LEAF}},
        "replication_configuration": {"rules": {"destination": _LEAF, "filter": _LEAF}},
    },
    "aws_s3_bucket_versioning": {"versioning_configuration": _LEAF},
    "aws_s3_bucket_server_side_encryption_configuration": _S3_SSE_RULE,
    "aws_s3_bucket_lifecycle_configuration": {
        "rule": {"expiration": _LEAF, "transition": _LEAF, "filter": _LEAF},
    },
    "aws_security_group": _INGRESS_EGRESS,
    "aws_default_security_group": _INGRESS_EGRESS,
    "aws_network_acl": _INGRESS_EGRESS,
    "aws_instance": {
        "root_block_device": _LEAF,
        "ebs_block_device": _LEAF,
        "metadata_options": _LEAF,
        "network_interface": _LEAF,
        "credit_specification": _LEAF,
    },
    "aws_launch_template": {
        "metadata_options": _LEAF,
        "monitoring": _LEAF,
        "iam_instance_profile": _LEAF,
        "network_interfaces": _LEAF,
        "block_device_mappings": {"ebs": _LEAF},
    },
    "aws_cloudtrail": {
        "event_selector": {"data_resource": _LEAF},
        "advanced_event_selector": {"field_selector": _LEAF},
        "insight_selector": _LEAF,
    },
    "aws_flow_log": {"destination_options": _LEAF},
    "aws_lambda_function": {
        "vpc_config": _LEAF,
        "tracing_config": _LEAF,
        "dead_letter_config": _LEAF,
        "environment": _LEAF,
        "ephemeral_storage": _LEAF,
    },
    "aws_dynamodb_table": {
        "server_side_encryption": _LEAF,
        "point_in_time_recovery": _LEAF,
        "attribute": _LEAF,
        "ttl": _LEAF,
    },
    "aws_eks_cluster": {
        "vpc_config": _LEAF,
        "encryption_config": {"provider": _LEAF},
        "kubernetes_network_config": _LEAF,
    },
    "aws_ecs_cluster": {
        "setting": _LEAF,
        "configuration": {"execute_command_configuration": {"log_configuration": _LEAF}},
    },
    "aws_ecs_task_definition": {"volume": _LEAF},
    "aws_lb": {"access_logs": _LEAF},
    "aws_lb_listener": {"default_action": _LEAF},
    "aws_api_gateway_stage": {"access_log_settings": _LEAF},
    "aws_cloudfront_distribution": {
        "origin": {"s3_origin_config": _LEAF, "custom_origin_config": _LEAF},
        "default_cache_behavior": _LEAF,
        "ordered_cache_behavior": _LEAF,
        "viewer_certificate": _LEAF,
        "logging_config": _LEAF,
        "restrictions": {"geo_restriction": _LEAF},
    },
    "aws_elasticache_replication_group": {"log_delivery_configuration": _LEAF},
    "aws_kinesis_firehose_delivery_stream": {"server_side_encryption": _LEAF},
    "aws_wafv2_web_acl": {"rule": _LEAF, "default_action": _LEAF, "visibility_config": _LEAF},
}


def block_tree(
    kind: str,
    path: Sequence[str] = (),
    table: Optional[Mapping[str, BlockTree]] = None,
) -> Optional[BlockTree]:
    """Return the nested block names allowed under ``path`` for ``kind``.

    ``None`` means the path itself is not a known block.
    """

    tree: Optional[BlockTree] = (BLOCK_TYPES if table is None else table).get(kind)
    for name in path:
        if tree is None:
            return None
        tree = tree.get(name)
    return tree


def is_mapped(kind: str, path: str, table: Optional[Mapping[str, BlockTree]] = None) -> bool:
    """Return ``True`` when the ``/``-separated block ``path`` is known for ``kind``."""

    if kind.startswith("data."):
        kind = kind[len("data.") :]
    return block_tree(kind, [segment for segment in path.split("/") if segment], table) is not None


__all__ = ["BLOCK_TYPES", "BlockTree", "block_tree", "is_mapped"]
