"""ABI fragments for the AVS registry contracts.

Only the read-side functions and events used by the reader are declared.
"""

_OPERATOR_STRUCT = {
    "internalType": "struct OperatorStateRetriever.Operator[][]",
    "name": "",
    "type": "tuple[][]",
    "components": [
        {"internalType": "address", "name": "operator", "type": "address"},
        {"internalType": "bytes32", "name": "operatorId", "type": "bytes32"},
        {"internalType": "uint96", "name": "stake", "type": "uint96"},
    ],
}

REGISTRY_COORDINATOR_ABI = [
    {
        "inputs": [],
        "name": "quorumCount",
        "outputs": [{"internalType": "uint8", "name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "blsApkRegistry",
        "outputs": [{"internalType": "contract IBLSApkRegistry", "name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "stakeRegistry",
        "outputs": [{"internalType": "contract IStakeRegistry", "name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "bytes32", "name": "operatorId", "type": "bytes32"}],
        "name": "getCurrentQuorumBitmap",
        "outputs": [{"internalType": "uint192", "name": "", "type": "uint192"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "address", "name": "operator", "type": "address"}],
        "name": "getOperatorId",
        "outputs": [{"internalType": "bytes32", "name": "", "type": "bytes32"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "bytes32", "name": "operatorId", "type": "bytes32"}],
        "name": "getOperatorFromId",
        "outputs": [{"internalType": "address", "name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "address", "name": "operator", "type": "address"}],
        "name": "getOperatorStatus",
        "outputs": [
            {
                "internalType": "enum IRegistryCoordinator.OperatorStatus",
                "name": "",
                "type": "uint8",
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
]

STAKE_REGISTRY_ABI = [
    {
        "inputs": [
            {"internalType": "bytes32", "name": "operatorId", "type": "bytes32"},
            {"internalType": "uint8", "name": "quorumNumber", "type": "uint8"},
        ],
        "name": "getCurrentStake",
        "outputs": [{"internalType": "uint96", "name": "", "type": "uint96"}],
        "stateMutability": "view",
        "type": "function",
    },
]

OPERATOR_STATE_RETRIEVER_ABI = [
    {
        "inputs": [
            {
                "internalType": "contract IRegistryCoordinator",
                "name": "registryCoordinator",
                "type": "address",
            },
            {"internalType": "bytes", "name": "quorumNumbers", "type": "bytes"},
            {"internalType": "uint32", "name": "blockNumber", "type": "uint32"},
        ],
        "name": "getOperatorState",
        "outputs": [_OPERATOR_STRUCT],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {
                "internalType": "contract IRegistryCoordinator",
                "name": "registryCoordinator",
                "type": "address",
            },
            {"internalType": "bytes32", "name": "operatorId", "type": "bytes32"},
            {"internalType": "uint32", "name": "blockNumber", "type": "uint32"},
        ],
        "name": "getOperatorState",
        "outputs": [
            {"internalType": "uint256", "name": "", "type": "uint256"},
            _OPERATOR_STRUCT,
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {
                "internalType": "contract IRegistryCoordinator",
                "name": "registryCoordinator",
                "type": "address",
            },
            {"internalType": "uint32", "name": "referenceBlockNumber", "type": "uint32"},
            {"internalType": "bytes", "name": "quorumNumbers", "type": "bytes"},
            {"internalType": "bytes32[]", "name": "nonSignerOperatorIds", "type": "bytes32[]"},
        ],
        "name": "getCheckSignaturesIndices",
        "outputs": [
            {
                "internalType": "struct OperatorStateRetriever.CheckSignaturesIndices",
                "name": "",
                "type": "tuple",
                "components": [
                    {"internalType": "uint32[]", "name": "nonSignerQuorumBitmapIndices", "type": "uint32[]"},
                    {"internalType": "uint32[]", "name": "quorumApkIndices", "type": "uint32[]"},
                    {"internalType": "uint32[]", "name": "totalStakeIndices", "type": "uint32[]"},
                    {"internalType": "uint32[][]", "name": "nonSignerStakeIndices", "type": "uint32[][]"},
                ],
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
]

BLS_APK_REGISTRY_ABI = [
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "address", "name": "operator", "type": "address"},
            {
                "indexed": False,
                "internalType": "struct BN254.G1Point",
                "name": "pubkeyG1",
                "type": "tuple",
                "components": [
                    {"internalType": "uint256", "name": "X", "type": "uint256"},
                    {"internalType": "uint256", "name": "Y", "type": "uint256"},
                ],
            },
            {
                "indexed": False,
                "internalType": "struct BN254.G2Point",
                "name": "pubkeyG2",
                "type": "tuple",
                "components": [
                    {"internalType": "uint256[2]", "name": "X", "type": "uint256[2]"},
                    {"internalType": "uint256[2]", "name": "Y", "type": "uint256[2]"},
                ],
            },
        ],
        "name": "NewPubkeyRegistration",
        "type": "event",
    },
]
