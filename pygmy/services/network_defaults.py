"""The default Docker network that pygmy services join."""

from pygmy.engine.networks import IPAM, IPAMConfig, Network


def new():
    """Return the default network definition, used when none is configured."""
    return Network(
        name="amazeeio-network",
        ipam=IPAM(
            driver="",
            options=None,
            config=[IPAMConfig(subnet="10.99.99.0/24", gateway="10.99.99.1")],
        ),
        labels={"pygmy.name": "amazeeio-network"},
    )