from fastapi import APIRouter, Query
from dishka.integrations.fastapi import inject
from dishka import FromComponent
from typing import Annotated
from blockchain.schemas import (
    BalanceResponse,
    TransactionsResponse,
    NftTransfersResponse
)
from blockchain.usecases import (
    GetBalanceAtDateUseCase,
    GetTransactionsUseCase,
    GetNftTransfersUseCase
)

router = APIRouter(
    prefix="/api/blockchain",
    tags=["Blockchain"]
)


@router.get("/balance", response_model=BalanceResponse)
@inject
async def get_balance(
    address: Annotated[str, Query(description="Account address")],
    date: Annotated[str, Query(description="Date as YYYY-MM-DD, midnight UTC")],
    use_case: Annotated[
        GetBalanceAtDateUseCase, FromComponent("blockchain")
    ]
) -> BalanceResponse:
    """
    Get account balance at the last block before a date.

    Parameters
    ----------
    address : str
        Account address
    date : str
        Calendar date
    use_case : GetBalanceAtDateUseCase
        Use case for getting the balance

    Returns
    -------
    BalanceResponse
        Balance as a decimal string
    """
    return await use_case(address=address, date=date)


@router.get("/transactions", response_model=TransactionsResponse)
@inject
async def get_transactions(
    address: Annotated[str, Query(description="Emitting address")],
    start_block: Annotated[str, Query(alias="startBlock", description="First block to scan")],
    use_case: Annotated[
        GetTransactionsUseCase, FromComponent("blockchain")
    ]
) -> TransactionsResponse:
    """
    Get raw logs emitted by an address from a block to the chain head.
    """
    return await use_case(address=address, start_block=start_block)


@router.get("/nft-transfers", response_model=NftTransfersResponse)
@inject
async def get_nft_transfers(
    address: Annotated[str, Query(description="Account sending or receiving")],
    contract_address: Annotated[str, Query(alias="contractAddress", description="NFT contract address")],
    start_block: Annotated[str, Query(alias="startBlock", description="First block to scan")],
    use_case: Annotated[
        GetNftTransfersUseCase, FromComponent("blockchain")
    ]
) -> NftTransfersResponse:
    """
    Get Transfer events of an NFT contract involving an account.

    Parameters
    ----------
    address : str
        Account address
    contract_address : str
        NFT contract address
    start_block : str
        Starting block number
    use_case : GetNftTransfersUseCase
        Use case for decoding transfers

    Returns
    -------
    NftTransfersResponse
        Transfers in ledger order
    """
    return await use_case(
        address=address,
        contract_address=contract_address,
        start_block=start_block
    )
