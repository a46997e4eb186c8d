from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import schemas, wallet
from ..database import get_db

router = APIRouter(prefix="/wallet", tags=["Wallet"])


@router.get("/", response_model=schemas.WalletSummary)
def read_wallet(user_id: str, db: Session = Depends(get_db)):
    """
    Wallet balance, ledger entries and the coupons currently on offer to the user.
    """
    return wallet.get_wallet_summary(db, user_id=user_id)
