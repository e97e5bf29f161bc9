#relay_control\api\container.py
from relay_control.container import config_repository, policy_paths, reconciler


def get_repository():
    return config_repository


def get_reconciler():
    return reconciler


def get_paths():
    return policy_paths
