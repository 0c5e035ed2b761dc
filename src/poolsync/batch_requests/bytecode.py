"""
Creation bytecode of the Uniswap V2 batch read contracts. Each contract performs its reads in the
constructor and returns the ABI-encoded result instead of deploying, so it is executed with a
single `eth_call` carrying no `to` address.
"""

# constructor(uint256 from, uint256 step, address factory) -> address[]
GET_UNISWAP_V2_PAIRS_BATCH_REQUEST = bytes.fromhex(
    "608060405234801561001057600080fd5b506040516104d23803806104d28339818101604052810190610032919061"
    "023e565b60008267ffffffffffffffff81111561004e5761004d610291565b5b60405190808252806020026020018201"
    "604052801561007c5781602001602082028036833780820191505090505b50905060005b83811015610171578273ffff"
    "ffffffffffffffffffffffffffffffffffff16631e3dd18b82876100b291906102ef565b6040518263ffffffff1660e0"
    "1b81526004016100ce9190610332565b6020604051808303816000875af11580156100ed573d6000803e3d6000fd5b50"
    "5050506040513d601f19601f82011682018060405250810190610111919061034d565b82828151811061012457610123"
    "61037a565b5b602002602001019073ffffffffffffffffffffffffffffffffffffffff16908173ffffffffffffffffff"
    "ffffffffffffffffffffff16815250508080610169906103a9565b915050610082565b50600081604051602001610185"
    "91906104af565b604051602081830303815290604052905060008151905081600052806000f35b600080fd5b60008190"
    "50919050565b6101bd816101aa565b81146101c857600080fd5b50565b6000815190506101da816101b4565b92915050"
    "565b600073ffffffffffffffffffffffffffffffffffffffff82169050919050565b600061020b826101e0565b905091"
    "9050565b61021b81610200565b811461022657600080fd5b50565b60008151905061023881610212565b92915050565b"
    "600080600060608486031215610257576102566101a5565b5b6000610265868287016101cb565b935050602061027686"
    "8287016101cb565b925050604061028786828701610229565b9150509250925092565b7f4e487b710000000000000000"
    "0000000000000000000000000000000000000000600052604160045260246000fd5b7f4e487b71000000000000000000"
    "00000000000000000000000000000000000000600052601160045260246000fd5b60006102fa826101aa565b91506103"
    "05836101aa565b925082820190508082111561031d5761031c6102c0565b5b92915050565b61032c816101aa565b8252"
    "5050565b60006020820190506103476000830184610323565b92915050565b6000602082840312156103635761036261"
    "01a5565b5b600061037184828501610229565b91505092915050565b7f4e487b71000000000000000000000000000000"
    "00000000000000000000000000600052603260045260246000fd5b60006103b4826101aa565b91507fffffffffffffff"
    "ffffffffffffffffffffffffffffffffffffffffffffffffff82036103e6576103e56102c0565b5b6001820190509190"
    "50565b600081519050919050565b600082825260208201905092915050565b6000819050602082019050919050565b61"
    "042681610200565b82525050565b6000610438838361041d565b60208301905092915050565b60006020820190509190"
    "50565b600061045c826103f1565b61046681856103fc565b93506104718361040d565b8060005b838110156104a25781"
    "51610489888261042c565b975061049483610444565b925050600181019050610475565b508593505050509291505056"
    "5b600060208201905081810360008301526104c98184610451565b90509291505056fe"
)

# constructor(address[] pools) -> (address,uint8,address,uint8,uint112,uint112)[]
GET_UNISWAP_V2_POOL_DATA_BATCH_REQUEST = bytes.fromhex(
    "608060405234801561001057600080fd5b5060405161061438038061061483398101604081905261002f916103f056"
    "5b600081516001600160401b0381111561004a5761004a6103be565b6040519080825280602002602001820160405280"
    "156100aa57816020015b6040805160c08101825260008082526020808301829052928201819052606082018190526080"
    "820181905260a082015282526000199092019101816100685790505b50905060005b825181101561038a576040805160"
    "c081018252600080825260208201819052918101829052606081018290526080810182905260a0810191909152838281"
    "5181106100fd576100fd6104b4565b60200260200101516001600160a01b0316630dfe16816040518163ffffffff1660"
    "e01b8152600401602060405180830381865afa158015610142573d6000803e3d6000fd5b505050506040513d601f1960"
    "1f8201168201806040525081019061016691906104ca565b6001600160a01b03168082526040805163313ce56760e01b"
    "8152905163313ce567916004808201926020929091908290030181865afa1580156101ad573d6000803e3d6000fd5b50"
    "5050506040513d601f19601f820116820180604052508101906101d191906104ec565b60ff1660208201528351849083"
    "9081106101ed576101ed6104b4565b60200260200101516001600160a01b031663d21220a76040518163ffffffff1660"
    "e01b8152600401602060405180830381865afa158015610232573d6000803e3d6000fd5b505050506040513d601f1960"
    "1f8201168201806040525081019061025691906104ca565b6001600160a01b03166040808301829052805163313ce567"
    "60e01b8152905163313ce567916004808201926020929091908290030181865afa1580156102a0573d6000803e3d6000"
    "fd5b505050506040513d601f19601f820116820180604052508101906102c491906104ec565b60ff1660608201528351"
    "8490839081106102e0576102e06104b4565b60200260200101516001600160a01b0316630902f1ac6040518163ffffff"
    "ff1660e01b8152600401606060405180830381865afa158015610325573d6000803e3d6000fd5b505050506040513d60"
    "1f19601f820116820180604052508101906103499190610526565b506001600160701b0390811660a084015216608082"
    "015282518190849084908110610376576103766104b4565b6020908102919091010152506001016100b0565b50600081"
    "60405160200161039e9190610576565b604051602081830303815290604052905060008151905081600052806000f35b"
    "634e487b7160e01b600052604160045260246000fd5b80516001600160a01b03811681146103eb57600080fd5b919050"
    "565b6000602080838503121561040357600080fd5b82516001600160401b038082111561041a57600080fd5b81850191"
    "5085601f83011261042e57600080fd5b815181811115610440576104406103be565b8060051b604051601f19603f8301"
    "1681018181108582111715610465576104656103be565b60405291825284820192508381018501918883111561048357"
    "600080fd5b938501935b828510156104a857610499856103d4565b84529385019392850192610488565b989750505050"
    "50505050565b634e487b7160e01b600052603260045260246000fd5b6000602082840312156104dc57600080fd5b6104"
    "e5826103d4565b9392505050565b6000602082840312156104fe57600080fd5b815160ff811681146104e557600080fd"
    "5b80516001600160701b03811681146103eb57600080fd5b60008060006060848603121561053b57600080fd5b610544"
    "8461050f565b92506105526020850161050f565b9150604084015163ffffffff8116811461056b57600080fd5b809150"
    "509250925092565b602080825282518282018190526000919060409081850190868401855b8281101561060657815180"
    "516001600160a01b0390811686528782015160ff90811689880152878301519091168787015260608083015190911690"
    "8601526080808201516001600160701b039081169187019190915260a091820151169085015260c09093019290850190"
    "600101610593565b509197965050505050505056fe"
)

# constructor(address[] pools) -> (uint112,uint112)[]
SYNC_UNISWAP_V2_POOL_BATCH_REQUEST = bytes.fromhex(
    "608060405234801561001057600080fd5b5060405161036f38038061036f83398101604081905261002f916101d156"
    "5b600081516001600160401b0381111561004a5761004a61019f565b6040519080825280602002602001820160405280"
    "1561008f57816020015b6040805180820190915260008082526020820152815260200190600190039081610068579050"
    "5b50905060005b825181101561016b5760408051808201909152600080825260208201528382815181106100c4576100"
    "c4610295565b60200260200101516001600160a01b0316630902f1ac6040518163ffffffff1660e01b81526004016060"
    "60405180830381865afa158015610109573d6000803e3d6000fd5b505050506040513d601f19601f8201168201806040"
    "525081019061012d91906102c2565b506001600160701b03908116602084015216815282518190849084908110610157"
    "57610157610295565b602090810291909101015250600101610095565b5060008160405160200161017f919061031256"
    "5b604051602081830303815290604052905060008151905081600052806000f35b634e487b7160e01b60005260416004"
    "5260246000fd5b80516001600160a01b03811681146101cc57600080fd5b919050565b600060208083850312156101e4"
    "57600080fd5b82516001600160401b03808211156101fb57600080fd5b818501915085601f83011261020f57600080fd"
    "5b8151818111156102215761022161019f565b8060051b604051601f19603f8301168101818110858211171561024657"
    "61024661019f565b60405291825284820192508381018501918883111561026457600080fd5b938501935b8285101561"
    "02895761027a856101b5565b84529385019392850192610269565b98975050505050505050565b634e487b7160e01b60"
    "0052603260045260246000fd5b80516001600160701b03811681146101cc57600080fd5b600080600060608486031215"
    "6102d757600080fd5b6102e0846102ab565b92506102ee602085016102ab565b9150604084015163ffffffff81168114"
    "61030757600080fd5b809150509250925092565b60208082528251828201819052600091906040908185019086840185"
    "5b8281101561036157815180516001600160701b03908116865290870151168685015292840192908501906001016103"
    "2f565b509197965050505050505056fe"
)
