"""
Dry-run of a bulk deployment against the in-process model: every chunk is deployed through a model
VestingFactory and then funded batch by batch, so that a bad row or an inconsistent plan shows up
before any real transaction is sent.
"""

from .batch import CHUNK_SIZE
from .factory import VestingFactory
from .ledger import ERC20Mock, Ledger
from .vesting import Vesting


def simulate_batch(plan, now, chunk_size=CHUNK_SIZE, setup_iterations=None):
    """Runs `plan` on a fresh ledger at time `now`; returns the model factory."""
    ledger = Ledger(timestamp=now)
    owner = ledger.new_address()
    token = ledger.deploy(ERC20Mock(18))
    impl = ledger.deploy(Vesting())
    factory = VestingFactory.create(ledger, impl.address, owner, token.address)

    # Model configs point at the model token, not the real one.
    for chunk in plan.chunks(chunk_size):
        factory.deploy_batch([c.replace(token=token.address) for c in chunk], sender=owner)

    total = plan.total_amount
    token.mint(owner, total)
    token.approve(factory.address, total, sender=owner)
    step = setup_iterations or chunk_size
    while factory.next_batch_index < factory.get_number_of_deployments():
        factory.setup_next_batch(step, sender=owner)

    return factory
