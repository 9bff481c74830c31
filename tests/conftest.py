"""Test configuration for pytest.

This module imports fixtures that should be available to all tests.
"""

# Import fixtures
from tests.fixtures.common import (  # noqa
    chain_config,
    analysis_config,
    mock_registry,
    erc20_chain,
    erc721_chain,
    eoa_chain,
)
