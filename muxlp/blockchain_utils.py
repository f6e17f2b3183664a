from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware

from .config.rpc_config import get_rpc_endpoint


def connect_rpc(rpc_url, chain_id=None, poa=False, timeout=60):
    w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
    if poa:
        w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    if not w3.is_connected():
        raise ConnectionError(f"RPC connection failed: {rpc_url}")
    if chain_id is not None and w3.eth.chain_id != chain_id:
        raise ValueError(f"{rpc_url} reports chain id {w3.eth.chain_id}, expected {chain_id}")
    return w3


def connect_chain(chain, cfg=None):
    rpc_url, chain_id, poa = get_rpc_endpoint(chain, cfg)
    return connect_rpc(rpc_url, chain_id=chain_id, poa=poa)
