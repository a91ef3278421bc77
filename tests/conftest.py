from logging import Logger

import pytest

from orderdeployer.cli.log import setup_pytest_logging
from orderdeployer.deployment.config import DeploymentConfig, load
from orderdeployer.testing.mock_rpc import MockReadableClient


GUI_CONFIG = """
gui:
  name: Fixed limit
  description: Fixed limit order strategy
  deployments:
    - deployment: some-deployment
      name: Buy WETH with USDC on Base.
      description: Buy WETH with USDC for fixed price on Base network.
      deposits:
        - token: token1
          min: 0
          presets:
            - "0"
            - "10"
            - "100"
            - "1000"
            - "10000"
      fields:
        - binding: binding-1
          name: Field 1 name
          description: Field 1 description
          presets:
            - name: Preset 1
              value: "0x1234567890abcdef1234567890abcdef12345678"
            - name: Preset 2
              value: "false"
            - name: Preset 3
              value: "some-string"
        - binding: binding-2
          name: Field 2 name
          description: Field 2 description
          min: 100
          presets:
            - value: "99.2"
            - value: "582.1"
            - value: "648.239"
"""

GUI_CONFIG_2 = """
gui:
  name: Test test
  description: Test test test
  deployments:
    - deployment: other-deployment
      name: Test test
      description: Test test test
      deposits:
        - token: token1
          min: 0
          presets:
            - "0"
        - token: token2
          min: 0
          presets:
            - "0"
      fields:
        - binding: test-binding
          name: Test binding
          description: Test binding description
          presets:
            - value: "test-value"
"""

ORDER_SECTIONS = """
networks:
    some-network:
        rpc: http://localhost:8085/rpc-url
        chain-id: 123
        network-id: 123
        currency: ETH

subgraphs:
    some-sg: https://www.some-sg.com

deployers:
    some-deployer:
        network: some-network
        address: 0xF14E09601A47552De6aBd3A0B165607FaFd2B5Ba

orderbooks:
    some-orderbook:
        address: 0xc95A5f8eFe14d7a20BD2E5BAFEC4E71f8Ce0B9A6
        network: some-network
        subgraph: some-sg

tokens:
    token1:
        network: some-network
        address: 0xc2132d05d31c914a87c6611c10748aeb04b58e8f
        decimals: 6
        label: T1
        symbol: T1
    token2:
        network: some-network
        address: 0x8f3cf7ad23cd3cadbd9735aff958023239c6a063
        decimals: 18
        label: T2
        symbol: T2

scenarios:
    some-scenario:
        network: some-network
        deployer: some-deployer

orders:
    some-order:
      inputs:
        - token: token1
          vault-id: 1
      outputs:
        - token: token2
          vault-id: 1
      deployer: some-deployer
      orderbook: some-orderbook

deployments:
    some-deployment:
        scenario: some-scenario
        order: some-order
    other-deployment:
        scenario: some-scenario
        order: some-order
---
#calculate-io
_ _: 0 0;
#handle-io
:;
#handle-add-order
:;
"""


@pytest.fixture()
def logger() -> Logger:
    return setup_pytest_logging()


@pytest.fixture(scope="session")
def order_sections() -> str:
    """Order document without the gui section."""
    return ORDER_SECTIONS


@pytest.fixture(scope="session")
def order_document() -> str:
    """Order document with one deployment offering one deposit and two fields."""
    return f"{GUI_CONFIG}\n{ORDER_SECTIONS}"


@pytest.fixture(scope="session")
def order_document_2() -> str:
    """Order document with one deployment offering two deposits and one field."""
    return f"{GUI_CONFIG_2}\n{ORDER_SECTIONS}"


@pytest.fixture()
def config(order_document) -> DeploymentConfig:
    return load(order_document, "some-deployment")


@pytest.fixture()
def config_2(order_document_2) -> DeploymentConfig:
    return load(order_document_2, "other-deployment")


@pytest.fixture()
def mock_client() -> MockReadableClient:
    return MockReadableClient()
