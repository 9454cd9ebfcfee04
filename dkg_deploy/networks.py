from ape import networks

from dkg_deploy.constants import LOCAL_NETWORKS


def is_local_network() -> bool:
    """Returns True when connected to a development network."""
    network = networks.provider.network
    return network.name in LOCAL_NETWORKS or network.name.endswith("-fork")
