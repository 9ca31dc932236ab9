#!/usr/bin/env python3
"""
Opswatch Metric Stream CDK Application

Streams CloudWatch metrics to an external HTTPS endpoint through Kinesis Data
Firehose, with an S3 bucket catching deliveries that fail.

Supports two mutually exclusive configuration profiles:
- file: endpoint URL and namespace filters from a parameter file
        (cdk synth -c ParamFile=params.yaml)
- parameter: endpoint URL from the ExternalUrl CloudFormation parameter
        (cdk deploy --parameters ExternalUrl=https://...)
"""
import sys

import aws_cdk as cdk
import pydantic

from opswatch_metric_stream_cdk.exceptions import OpswatchMetricStreamCdkError
from opswatch_metric_stream_cdk.logger import get_logger
from opswatch_metric_stream_cdk.logging_config import configure_logging_from_settings
from opswatch_metric_stream_cdk.param_file import load_param_file, resolve_config_source
from opswatch_metric_stream_cdk.project_settings import (
    CONFIG_SOURCE_CONTEXT_KEY,
    PARAM_FILE_CONTEXT_KEY,
    ConfigSource,
)
from opswatch_metric_stream_cdk.settings import get_settings
from opswatch_metric_stream_cdk.stacks.metric_stream_stack import MetricStreamStack

app = cdk.App()

try:
    settings = get_settings()
except pydantic.ValidationError as e:
    print(f"\n❌ Settings Error: {e}\n", file=sys.stderr)
    sys.exit(1)

configure_logging_from_settings(settings)
logger = get_logger("app")

try:
    param_file = app.node.try_get_context(PARAM_FILE_CONTEXT_KEY)
    source = resolve_config_source(
        app.node.try_get_context(CONFIG_SOURCE_CONTEXT_KEY),
        param_file,
    )
    endpoint = load_param_file(param_file) if source is ConfigSource.STATIC_FILE else None

    stack = MetricStreamStack(
        app,
        settings.stack_name,
        source=source,
        endpoint=endpoint,
        delivery=settings.delivery,
        output_format=settings.output_format,
    )
except OpswatchMetricStreamCdkError as e:
    logger.error("configuration_error", error=str(e), error_type=type(e).__name__)
    print(f"\n❌ Configuration Error: {e}\n", file=sys.stderr)
    sys.exit(1)

# Apply tags to all stacks
for key, value in settings.tags.items():
    cdk.Tags.of(app).add(key, value)

app.synth()
