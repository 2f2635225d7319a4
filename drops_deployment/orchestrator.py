from collections import OrderedDict
from typing import Any, Callable, List, Optional

from drops_deployment.config import DeploymentConfig
from drops_deployment.errors import DeploymentError, VerificationError
from drops_deployment.manifest import DeploymentManifest, DeploymentResult
from drops_deployment.params import DeploymentPlan

# (artifact, constructor_args) -> DeploymentResult or {"deployedAddress": ..., "verification": ...}
DeployAndVerify = Callable[[str, List[Any]], Any]


def run_deployment(
    config: DeploymentConfig,
    deploy_and_verify: DeployAndVerify,
    plan: Optional[DeploymentPlan] = None,
) -> DeploymentManifest:
    """
    Deploys every contract of the plan in order, feeding the addresses of
    earlier deployments into the constructor parameters of later ones.

    Configuration is checked before anything is deployed. A failing step stops
    the run with a DeploymentError that lists the contracts already deployed;
    nothing is retried or rolled back.
    """
    if plan is None:
        plan = DeploymentPlan.from_yaml()
    config.require(plan.required_config_keys)

    completed = OrderedDict()
    total = len(plan)
    for position, step in enumerate(plan, start=1):
        spec = step.resolve(
            config=config,
            addresses=OrderedDict(
                (name, result.deployed_address) for name, result in completed.items()
            ),
        )
        print(f"\nDeploying {spec.name} ({spec.artifact}) [{position}/{total}]")
        try:
            response = deploy_and_verify(spec.artifact, spec.args)
            result = DeploymentResult.from_response(response)
        except Exception as e:
            raise DeploymentError(
                step=spec.name,
                position=position,
                total=total,
                completed=completed,
                reason=str(e) or type(e).__name__,
                orphaned_address=(
                    e.deployed_address if isinstance(e, VerificationError) else None
                ),
            ) from e

        completed[spec.name] = result
        print(f"(i) {spec.name} deployed to {result.deployed_address}")

    return DeploymentManifest(completed)
