"""Idle-stop alarm for the public devbox instance.

The alarm stops the instance once CPU stays under the threshold for
``datapoints_to_alarm`` of the last ``evaluation_periods`` periods.
``IdleStopPolicy.should_stop`` mirrors that evaluation so the parameters can be
checked without deploying.
"""
from dataclasses import dataclass
from typing import Optional, Sequence

import pulumi
import pulumi_aws as aws

from devbox_infra.compute import PlacedInstance
from devbox_infra.config import StackSettings, create_common_tags


@dataclass(frozen=True)
class IdleStopPolicy:
    threshold: float = 0.99
    period_seconds: int = 300
    evaluation_periods: int = 6
    datapoints_to_alarm: int = 5
    namespace: str = "AWS/EC2"
    metric_name: str = "CPUUtilization"
    statistic: str = "Average"
    comparison_operator: str = "LessThanThreshold"
    treat_missing_data: str = "notBreaching"

    @classmethod
    def from_settings(cls, settings: StackSettings) -> "IdleStopPolicy":
        return cls(
            threshold=settings.idle_cpu_threshold,
            period_seconds=settings.idle_period_seconds,
            evaluation_periods=settings.idle_evaluation_periods,
            datapoints_to_alarm=settings.idle_datapoints_to_alarm,
        )

    def is_breaching(self, value: Optional[float]) -> bool:
        # Missing data counts as not breaching.
        return value is not None and value < self.threshold

    def should_stop(self, datapoints: Sequence[Optional[float]]) -> bool:
        """True when the newest evaluation window would put the alarm in ALARM.

        ``datapoints`` is ordered oldest first, one entry per period.
        """
        if len(datapoints) < self.evaluation_periods:
            return False
        window = datapoints[-self.evaluation_periods:]
        breaching = sum(1 for value in window if self.is_breaching(value))
        return breaching >= self.datapoints_to_alarm


def stop_action_arn(region: str) -> str:
    return f"arn:aws:automate:{region}:ec2:stop"


def create_idle_stop_alarm(settings: StackSettings, target: PlacedInstance, region: str) -> aws.cloudwatch.MetricAlarm:
    policy = IdleStopPolicy.from_settings(settings)
    idle_minutes = policy.period_seconds * policy.datapoints_to_alarm // 60
    pulumi.log.info(
        f"Alarm {settings.alarm_name} stops the public instance after ~{idle_minutes} idle minutes "
        f"({policy.datapoints_to_alarm} of {policy.evaluation_periods} periods under {policy.threshold}%)")
    return aws.cloudwatch.MetricAlarm(f"{settings.project_name}-stop-idle-public-instance",
        name=settings.alarm_name,
        alarm_description=f"Stop {settings.public_instance_name} when CPU stays under {policy.threshold}%",
        namespace=policy.namespace,
        metric_name=policy.metric_name,
        statistic=policy.statistic,
        period=policy.period_seconds,
        dimensions={"InstanceId": target.instance.id},
        comparison_operator=policy.comparison_operator,
        threshold=policy.threshold,
        evaluation_periods=policy.evaluation_periods,
        datapoints_to_alarm=policy.datapoints_to_alarm,
        treat_missing_data=policy.treat_missing_data,
        alarm_actions=[stop_action_arn(region)],
        tags=create_common_tags(settings, "stop-idle-alarm"))
