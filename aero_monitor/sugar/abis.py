"""
Contract ABIs used by the monitor.

LpSugar is Aerodrome's read-only aggregation contract on Base
(verified at 0x9DE6Eab7a910A288dE83a04b6A43B52Fd1246f1E). Pool and token
reads go straight to the CL pool and ERC20 contracts.
"""

from aero_monitor.batchers.abi import ContractInterface

LP_SUGAR_ADDRESS = "0x9DE6Eab7a910A288dE83a04b6A43B52Fd1246f1E"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Order matters: Position.from_abi maps tuple values by position
POSITION_COMPONENTS = [
    {"name": "id", "type": "uint256"},
    {"name": "lp", "type": "address"},
    {"name": "liquidity", "type": "uint256"},
    {"name": "staked", "type": "uint256"},
    {"name": "amount0", "type": "uint256"},
    {"name": "amount1", "type": "uint256"},
    {"name": "staked0", "type": "uint256"},
    {"name": "staked1", "type": "uint256"},
    {"name": "unstaked_earned0", "type": "uint256"},
    {"name": "unstaked_earned1", "type": "uint256"},
    {"name": "emissions_earned", "type": "uint256"},
    {"name": "tick_lower", "type": "int24"},
    {"name": "tick_upper", "type": "int24"},
    {"name": "sqrt_ratio_lower", "type": "uint160"},
    {"name": "sqrt_ratio_upper", "type": "uint160"},
    {"name": "locker", "type": "address"},
    {"name": "unlocks_at", "type": "uint32"},
    {"name": "alm", "type": "address"},
]

_PAGINATED_INPUTS = [
    {"name": "_limit", "type": "uint256"},
    {"name": "_offset", "type": "uint256"},
    {"name": "_account", "type": "address"},
]

LP_SUGAR_ABI = [
    {
        "name": "positions",
        "type": "function",
        "stateMutability": "view",
        "inputs": _PAGINATED_INPUTS,
        "outputs": [{"name": "", "type": "tuple[]", "components": POSITION_COMPONENTS}],
    },
    {
        "name": "positionsUnstakedConcentrated",
        "type": "function",
        "stateMutability": "view",
        "inputs": _PAGINATED_INPUTS,
        "outputs": [{"name": "", "type": "tuple[]", "components": POSITION_COMPONENTS}],
    },
    {
        "name": "count",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]

CL_POOL_ABI = [
    {
        "name": "slot0",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "sqrtPriceX96", "type": "uint160"},
            {"name": "tick", "type": "int24"},
            {"name": "observationIndex", "type": "uint16"},
            {"name": "observationCardinality", "type": "uint16"},
            {"name": "observationCardinalityNext", "type": "uint16"},
            {"name": "unlocked", "type": "bool"},
        ],
    },
    {
        "name": "token0",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "name": "token1",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "name": "liquidity",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint128"}],
    },
]

ERC20_ABI = [
    {
        "name": "symbol",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
]

LP_SUGAR = ContractInterface(LP_SUGAR_ABI)
CL_POOL = ContractInterface(CL_POOL_ABI)
ERC20 = ContractInterface(ERC20_ABI)
