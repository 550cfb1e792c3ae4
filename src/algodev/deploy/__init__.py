from .deployer import AppDeployer, AppDeployParams, DeployResult, decide_deploy_state

__all__ = ["AppDeployer", "AppDeployParams", "DeployResult", "decide_deploy_state"]
