"""Project-wide settings and constants.

Following Zen of Python:
- There should be one obvious way to do it
- Explicit is better than implicit
- Constants in CAPS for clarity
"""
from enum import Enum


class ConfigSource(str, Enum):
    """Where the external endpoint URL (and filters) come from."""

    STATIC_FILE = "file"  # Parameter file read at synth time
    DEPLOYMENT_PARAMETER = "parameter"  # CloudFormation parameter resolved at deploy time


# Project naming - single source of truth
PROJECT_NAME = "opswatch"
DEFAULT_STACK_NAME = "CdkOpswatchMetricStreamStack"

# CDK context keys
PARAM_FILE_CONTEXT_KEY = "ParamFile"
CONFIG_SOURCE_CONTEXT_KEY = "ConfigSource"

# CloudFormation parameter used by the deployment-parameter profile
EXTERNAL_URL_PARAMETER = "ExternalUrl"
EXTERNAL_URL_PATTERN = "^https://.+"

# Resource names
DELIVERY_STREAM_NAME = "OpswatchMetricStream"
METRIC_STREAM_NAME = "OpswatchMetricStream"
ENDPOINT_NAME = "CentralMetricProcessor"
ERROR_BUCKET_RULE_ID = "DeleteBackups"
ERROR_BUCKET_RETENTION_DAYS = 1

# Wire formats
CONTENT_ENCODING = "GZIP"
BACKUP_COMPRESSION_FORMAT = "GZIP"
BACKUP_MODE = "FailedDataOnly"
SSE_ALGORITHM = "AES256"

# Trust principals
FIREHOSE_PRINCIPAL = "firehose.amazonaws.com"
METRIC_STREAM_PRINCIPAL = "streams.metrics.cloudwatch.amazonaws.com"

IAM_POLICY_VERSION = "2012-10-17"

# Firehose needs these to write (and clean up) failed batches in the error bucket
ERROR_BUCKET_ACTIONS = [
    "s3:AbortMultipartUpload",
    "s3:GetBucketLocation",
    "s3:GetObject",
    "s3:ListBucket",
    "s3:ListBucketMultipartUploads",
    "s3:PutObject",
]

DELIVERY_STREAM_ACTIONS = [
    "firehose:PutRecord",
    "firehose:PutRecordBatch",
]

# Profile descriptions, rendered as the stack description
PROFILE_CONFIG = {
    ConfigSource.STATIC_FILE: {
        "description": "CloudWatch metric stream to HTTP endpoint (endpoint and filters from parameter file)",
        "filters": True,
    },
    ConfigSource.DEPLOYMENT_PARAMETER: {
        "description": "CloudWatch metric stream to HTTP endpoint (endpoint from ExternalUrl parameter)",
        "filters": False,
    },
}

