"""Data models for Etherscan V2 API responses."""

from typing import Any

from pydantic import BaseModel, Field


class EtherscanResponse(BaseModel):
    """Envelope shared by every module/action: status "1" means success."""

    status: str = "0"
    message: str = ""
    result: Any = None

    model_config = {"extra": "ignore"}

    @property
    def ok(self) -> bool:
        return self.status == "1"

    @property
    def rate_limited(self) -> bool:
        return isinstance(self.result, str) and "rate limit" in self.result.lower()


class EtherscanTokenTransfer(BaseModel):
    """One row of ``module=account&action=tokentx``."""

    contract_address: str = Field(alias="contractAddress")
    token_name: str = Field(default="", alias="tokenName")
    token_symbol: str = Field(default="", alias="tokenSymbol")
    token_decimal: str = Field(default="", alias="tokenDecimal")

    model_config = {"extra": "ignore", "populate_by_name": True}

    @property
    def decimals(self) -> int:
        try:
            value = int(self.token_decimal)
        except (TypeError, ValueError):
            return 18
        return value or 18


class EtherscanSourceCode(BaseModel):
    """First row of ``module=contract&action=getsourcecode``."""

    source_code: str = Field(default="", alias="SourceCode")
    contract_name: str = Field(default="", alias="ContractName")

    model_config = {"extra": "ignore", "populate_by_name": True}
