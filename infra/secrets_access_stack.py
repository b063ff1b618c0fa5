"""Secrets access CDK stack: the IAM role assumed by the provider.

Provisions what the ``iamRole`` auth method needs:
- A managed policy allowing secret discovery and bulk reads
- An IAM role trusted by the configured principal (optional external id)
- SSM parameter + output carrying the role ARN for provider settings
"""

from __future__ import annotations

from aws_cdk import CfnOutput, Duration, Stack, Tags
from aws_cdk import aws_iam as iam
from aws_cdk import aws_ssm as ssm
from constructs import Construct

from infra.config import EnvironmentConfig


class SecretsAccessStack(Stack):
    """Least-privilege read access to Secrets Manager for the provider."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        config: EnvironmentConfig,
        **kwargs: object,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self._config = config

        for key, value in config.tags.items():
            Tags.of(self).add(key, value)

        self.read_policy = self._create_read_policy()
        self.provider_role = self._create_provider_role()

        self._publish_ssm_params()
        self._create_outputs()

    # Policy

    def _create_read_policy(self) -> iam.ManagedPolicy:
        statements = [
            # ListSecrets does not support resource-level permissions
            iam.PolicyStatement(
                sid="ListSecrets",
                actions=["secretsmanager:ListSecrets"],
                resources=["*"],
            ),
            iam.PolicyStatement(
                sid="ReadSecretValues",
                actions=[
                    "secretsmanager:BatchGetSecretValue",
                    "secretsmanager:GetSecretValue",
                    "secretsmanager:DescribeSecret",
                ],
                resources=[self._config.secret_arn_pattern()],
            ),
        ]
        if self._config.kms_key_arns:
            statements.append(
                iam.PolicyStatement(
                    sid="DecryptSecretValues",
                    actions=["kms:Decrypt"],
                    resources=list(self._config.kms_key_arns),
                )
            )

        return iam.ManagedPolicy(
            self,
            "SecretsReadPolicy",
            managed_policy_name=self._config.resource_name("secrets-read"),
            description="Read access to Secrets Manager for the external secrets provider",
            statements=statements,
        )

    # Role

    def _create_provider_role(self) -> iam.Role:
        principal: iam.IPrincipal
        if self._config.trusted_principal_arn:
            principal = iam.ArnPrincipal(self._config.trusted_principal_arn)
        else:
            principal = iam.AccountPrincipal(self._config.aws_account_id)

        role = iam.Role(
            self,
            "ProviderRole",
            role_name=self._config.resource_name("provider-role"),
            assumed_by=principal,
            external_ids=[self._config.external_id] if self._config.external_id else None,
            max_session_duration=Duration.hours(self._config.max_session_duration_hours),
            description="Role assumed by the external secrets provider (iamRole auth)",
        )
        role.add_managed_policy(self.read_policy)
        return role

    # SSM Parameters

    def _publish_ssm_params(self) -> None:
        ssm.StringParameter(
            self,
            "SsmProviderRoleArn",
            parameter_name=f"/{self._config.resource_prefix}/provider-role-arn",
            string_value=self.provider_role.role_arn,
            description="IAM role ARN for the external secrets provider",
        )

    # Outputs

    def _create_outputs(self) -> None:
        CfnOutput(
            self,
            "ProviderRoleArn",
            value=self.provider_role.role_arn,
            description="Role ARN to use as roleArn in provider settings",
        )
        CfnOutput(
            self,
            "SecretsReadPolicyArn",
            value=self.read_policy.managed_policy_arn,
            description="Managed policy granting secrets read access",
        )
