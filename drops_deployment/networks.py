from ape import networks

from drops_deployment.constants import LOCAL_NETWORKS


def is_local_network() -> bool:
    """Returns True if the connected network is a local development network."""
    return networks.provider.network.name in LOCAL_NETWORKS
