class AnalyzerError(Exception):
    pass


class InvalidWalletAddressError(AnalyzerError, ValueError):
    def __init__(self, address: object) -> None:
        super().__init__("Invalid wallet address.")
        self.address = address


class UnsupportedChainError(AnalyzerError, ValueError):
    def __init__(self, chain_id: object) -> None:
        super().__init__(f"Unsupported chainId: {chain_id}")
        self.chain_id = chain_id
