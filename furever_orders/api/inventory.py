from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from furever_orders.api.deps import get_db, require_admin
from furever_orders.schemas import InventorySummary, ProductStockRead
from furever_orders.services.inventory import InventoryAdjuster

router = APIRouter(dependencies=[Depends(require_admin)])

@router.get("/out-of-stock", response_model=List[ProductStockRead])
def out_of_stock(db: Session = Depends(get_db)):
    return [ProductStockRead.model_validate(p) for p in InventoryAdjuster(db).out_of_stock_products()]

@router.get("/low-stock", response_model=List[ProductStockRead])
def low_stock(db: Session = Depends(get_db)):
    return [ProductStockRead.model_validate(p) for p in InventoryAdjuster(db).low_stock_products()]

@router.get("/summary", response_model=InventorySummary)
def summary(db: Session = Depends(get_db)):
    return InventorySummary.model_validate(InventoryAdjuster(db).inventory_summary())
