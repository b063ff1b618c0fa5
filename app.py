#!/usr/bin/env python3
"""CDK application entry point for the external secrets provider infrastructure.

Usage:
    cdk deploy -c env=prod -c account=123456789012 \
        -c trustedPrincipalArn=arn:aws:iam::210987654321:role/runner -c externalId=...
"""

import aws_cdk as cdk

from infra.config import apply_context_overrides, get_environment_config
from infra.secrets_access_stack import SecretsAccessStack

app = cdk.App()

env_name = app.node.try_get_context("env") or "dev"
overrides = {
    key: app.node.try_get_context(key)
    for key in (
        "account",
        "region",
        "secretsPrefix",
        "trustedPrincipalArn",
        "externalId",
        "kmsKeyArns",
    )
}
config = apply_context_overrides(get_environment_config(env_name), overrides)

SecretsAccessStack(
    app,
    f"ExternalSecretsAws-Access-{config.stage}",
    config=config,
    env=cdk.Environment(account=config.aws_account_id, region=config.aws_region),
    description=f"IAM access for the external secrets provider ({config.stage})",
)

app.synth()
