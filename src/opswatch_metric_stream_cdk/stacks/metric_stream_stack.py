"""Metric Stream Stack for Opswatch.

Streams CloudWatch metrics through Kinesis Data Firehose to an external
HTTP endpoint. Deliveries that still fail after the retry window land in a
private, encrypted S3 bucket that empties itself after a day.

Resources are declared in dependency order:
error bucket -> firehose role -> delivery stream -> cloudwatch role -> metric stream
"""
from aws_cdk import CfnOutput, CfnParameter, Fn, Stack
from aws_cdk import aws_cloudwatch as cloudwatch
from aws_cdk import aws_iam as iam
from aws_cdk import aws_kinesisfirehose as firehose
from aws_cdk import aws_s3 as s3
from constructs import Construct

from ..config import DeliveryTuning, EndpointConfig, MetricFilter, OutputFormat
from ..exceptions import ConfigurationError
from ..logger import LogContext, get_logger
from ..project_settings import (
    BACKUP_COMPRESSION_FORMAT,
    BACKUP_MODE,
    CONTENT_ENCODING,
    DELIVERY_STREAM_ACTIONS,
    DELIVERY_STREAM_NAME,
    ENDPOINT_NAME,
    ERROR_BUCKET_ACTIONS,
    ERROR_BUCKET_RETENTION_DAYS,
    ERROR_BUCKET_RULE_ID,
    EXTERNAL_URL_PARAMETER,
    EXTERNAL_URL_PATTERN,
    FIREHOSE_PRINCIPAL,
    IAM_POLICY_VERSION,
    METRIC_STREAM_NAME,
    METRIC_STREAM_PRINCIPAL,
    PROFILE_CONFIG,
    SSE_ALGORITHM,
    ConfigSource,
)

logger = get_logger(__name__)


def _assume_role_policy(service: str) -> dict:
    return {
        "Version": IAM_POLICY_VERSION,
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"Service": service},
                "Action": "sts:AssumeRole",
            }
        ],
    }


def _metric_filters(
    filters: list[MetricFilter],
) -> list[cloudwatch.CfnMetricStream.MetricStreamFilterProperty] | None:
    # Empty lists are omitted from the template rather than rendered as []
    if not filters:
        return None
    return [
        cloudwatch.CfnMetricStream.MetricStreamFilterProperty(
            namespace=f.namespace,
            metric_names=f.metric_names or None,
        )
        for f in filters
    ]


class MetricStreamStack(Stack):
    """CloudWatch metric stream delivered to an HTTP endpoint via Firehose."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        source: ConfigSource,
        endpoint: EndpointConfig | None = None,
        delivery: DeliveryTuning | None = None,
        output_format: OutputFormat = OutputFormat.JSON,
        **kwargs,
    ) -> None:
        """Initialize Metric Stream Stack.

        Args:
            scope: CDK app or parent stack
            construct_id: Unique identifier for this stack
            source: Configuration profile supplying the endpoint URL
            endpoint: Loaded parameter file, required for the static-file
                profile and rejected for the deployment-parameter profile
            delivery: Firehose buffering and retry tuning (defaults apply if None)
            output_format: Metric stream output format
            **kwargs: Additional stack properties

        Raises:
            ConfigurationError: If ``endpoint`` doesn't match ``source``
        """
        source = ConfigSource(source)
        if source is ConfigSource.STATIC_FILE and endpoint is None:
            raise ConfigurationError("Static-file profile requires an endpoint configuration")
        if source is ConfigSource.DEPLOYMENT_PARAMETER and endpoint is not None:
            raise ConfigurationError(
                "Deployment-parameter profile cannot be combined with an endpoint configuration",
                url=endpoint.endpoint_url,
            )

        profile = PROFILE_CONFIG[source]
        kwargs.setdefault("description", profile["description"])
        super().__init__(scope, construct_id, **kwargs)

        self.source = source
        self.delivery = delivery or DeliveryTuning()

        with LogContext(logger, stack=construct_id, source=source.value) as log:
            # ========================================
            # Endpoint URL
            # ========================================

            if source is ConfigSource.STATIC_FILE:
                self.external_url_parameter = None
                endpoint_url = endpoint.endpoint_url
            else:
                self.external_url_parameter = CfnParameter(
                    self,
                    EXTERNAL_URL_PARAMETER,
                    type="String",
                    description="HTTPS endpoint that receives the metric stream",
                    allowed_pattern=EXTERNAL_URL_PATTERN,
                    constraint_description="must be an https:// URL",
                )
                endpoint_url = self.external_url_parameter.value_as_string

            # ========================================
            # Error bucket (failed deliveries only)
            # ========================================

            self.error_bucket = s3.CfnBucket(
                self,
                "ErrorBucket",
                public_access_block_configuration=s3.CfnBucket.PublicAccessBlockConfigurationProperty(
                    block_public_acls=True,
                    block_public_policy=True,
                    ignore_public_acls=True,
                    restrict_public_buckets=True,
                ),
                access_control="Private",
                bucket_encryption=s3.CfnBucket.BucketEncryptionProperty(
                    server_side_encryption_configuration=[
                        s3.CfnBucket.ServerSideEncryptionRuleProperty(
                            server_side_encryption_by_default=s3.CfnBucket.ServerSideEncryptionByDefaultProperty(
                                sse_algorithm=SSE_ALGORITHM,
                            )
                        )
                    ]
                ),
                lifecycle_configuration=s3.CfnBucket.LifecycleConfigurationProperty(
                    rules=[
                        s3.CfnBucket.RuleProperty(
                            id=ERROR_BUCKET_RULE_ID,
                            expiration_in_days=ERROR_BUCKET_RETENTION_DAYS,
                            abort_incomplete_multipart_upload=s3.CfnBucket.AbortIncompleteMultipartUploadProperty(
                                days_after_initiation=ERROR_BUCKET_RETENTION_DAYS,
                            ),
                            status="Enabled",
                        )
                    ]
                ),
            )
            log.debug("resource_declared", resource="ErrorBucket")

            # ========================================
            # Firehose role
            # ========================================

            self.delivery_role = iam.CfnRole(
                self,
                "KinesisRole",
                assume_role_policy_document=_assume_role_policy(FIREHOSE_PRINCIPAL),
                policies=[
                    iam.CfnRole.PolicyProperty(
                        policy_name="HttpDelivery",
                        policy_document={
                            "Version": IAM_POLICY_VERSION,
                            "Statement": [
                                {
                                    "Effect": "Allow",
                                    "Action": list(ERROR_BUCKET_ACTIONS),
                                    "Resource": [
                                        self.error_bucket.attr_arn,
                                        Fn.join("", [self.error_bucket.attr_arn, "/*"]),
                                    ],
                                }
                            ],
                        },
                    )
                ],
            )
            log.debug("resource_declared", resource="KinesisRole")

            # ========================================
            # Delivery stream
            # ========================================

            tuning = self.delivery
            self.delivery_stream = firehose.CfnDeliveryStream(
                self,
                "KinesisMetricStream",
                delivery_stream_name=DELIVERY_STREAM_NAME,
                delivery_stream_type="DirectPut",
                http_endpoint_destination_configuration=firehose.CfnDeliveryStream.HttpEndpointDestinationConfigurationProperty(
                    endpoint_configuration=firehose.CfnDeliveryStream.HttpEndpointConfigurationProperty(
                        name=ENDPOINT_NAME,
                        url=endpoint_url,
                    ),
                    request_configuration=firehose.CfnDeliveryStream.HttpEndpointRequestConfigurationProperty(
                        content_encoding=CONTENT_ENCODING,
                    ),
                    buffering_hints=firehose.CfnDeliveryStream.BufferingHintsProperty(
                        interval_in_seconds=tuning.interval_seconds,
                        size_in_m_bs=tuning.size_mb,
                    ),
                    role_arn=self.delivery_role.attr_arn,
                    retry_options=firehose.CfnDeliveryStream.RetryOptionsProperty(
                        duration_in_seconds=tuning.retry_duration_seconds,
                    ),
                    s3_backup_mode=BACKUP_MODE,
                    s3_configuration=firehose.CfnDeliveryStream.S3DestinationConfigurationProperty(
                        bucket_arn=self.error_bucket.attr_arn,
                        role_arn=self.delivery_role.attr_arn,
                        compression_format=BACKUP_COMPRESSION_FORMAT,
                        buffering_hints=firehose.CfnDeliveryStream.BufferingHintsProperty(
                            interval_in_seconds=tuning.backup_interval_seconds,
                            size_in_m_bs=tuning.backup_size_mb,
                        ),
                    ),
                ),
            )
            log.debug("resource_declared", resource="KinesisMetricStream")

            # ========================================
            # CloudWatch role
            # ========================================

            self.metric_stream_role = iam.CfnRole(
                self,
                "CloudwatchRole",
                assume_role_policy_document=_assume_role_policy(METRIC_STREAM_PRINCIPAL),
                policies=[
                    iam.CfnRole.PolicyProperty(
                        policy_name="FirehoseDelivery",
                        policy_document={
                            "Version": IAM_POLICY_VERSION,
                            "Statement": [
                                {
                                    "Effect": "Allow",
                                    "Action": list(DELIVERY_STREAM_ACTIONS),
                                    "Resource": self.delivery_stream.attr_arn,
                                }
                            ],
                        },
                    )
                ],
            )
            log.debug("resource_declared", resource="CloudwatchRole")

            # ========================================
            # Metric stream
            # ========================================

            include_filters = None
            exclude_filters = None
            if profile["filters"]:
                include_filters = _metric_filters(endpoint.include_filters)
                exclude_filters = _metric_filters(endpoint.exclude_filters)

            self.metric_stream = cloudwatch.CfnMetricStream(
                self,
                "CloudwatchMetricStream",
                name=METRIC_STREAM_NAME,
                output_format=OutputFormat(output_format).value,
                role_arn=self.metric_stream_role.attr_arn,
                firehose_arn=self.delivery_stream.attr_arn,
                include_filters=include_filters,
                exclude_filters=exclude_filters,
            )
            log.debug("resource_declared", resource="CloudwatchMetricStream")

            # CDK Outputs
            CfnOutput(
                self,
                "ErrorBucketName",
                value=self.error_bucket.ref,
                description="S3 bucket receiving metric batches the endpoint rejected",
                export_name=f"{self.stack_name}-error-bucket-name",
            )

            CfnOutput(
                self,
                "DeliveryStreamArn",
                value=self.delivery_stream.attr_arn,
                description="Firehose delivery stream forwarding metrics to the endpoint",
                export_name=f"{self.stack_name}-delivery-stream-arn",
            )

            CfnOutput(
                self,
                "MetricStreamArn",
                value=self.metric_stream.attr_arn,
                description="CloudWatch metric stream ARN",
                export_name=f"{self.stack_name}-metric-stream-arn",
            )

            log.info(
                "metric_stream_stack_composed",
                output_format=OutputFormat(output_format).value,
                include_filters=len(include_filters or []),
                exclude_filters=len(exclude_filters or []),
                retry_duration_seconds=tuning.retry_duration_seconds,
            )
