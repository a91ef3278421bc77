"""Order deployment configuration and transaction calldata engine.

- Load a deployment out of an order document, see :py:mod:`orderdeployer.deployment.config`

- Keep the user session, see :py:mod:`orderdeployer.state.session`

- Build approval, deposit and add order calldata, see :py:mod:`orderdeployer.ethereum.calldata`
"""
