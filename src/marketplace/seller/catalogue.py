"""Seller-managed product catalogue: commands and handler.

Every command loads the seller and the product, lets the seller verify
ownership and delegate to the product, then persists both.
"""

import structlog
from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.product.product import Product
from marketplace.seller.seller import Seller
from marketplace.shared.money import Money
from marketplace.shared.quantity import Quantity
from marketplace.shared.text import Description, ProductName

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Seller")
class AddProduct:
    seller_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    description = Text(required=True)
    price = Float(required=True, min_value=0.0)
    stock = Integer(required=True, min_value=0)


@marketplace.command(part_of="Seller")
class ChangeProductPrice:
    seller_id = Identifier(required=True)
    product_id = Identifier(required=True)
    price = Float(required=True, min_value=0.0)


@marketplace.command(part_of="Seller")
class ReplenishProduct:
    seller_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@marketplace.command(part_of="Seller")
class ReduceProductStock:
    seller_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@marketplace.command(part_of="Seller")
class UnlistProduct:
    seller_id = Identifier(required=True)
    product_id = Identifier(required=True)


@marketplace.command(part_of="Seller")
class RelistProduct:
    seller_id = Identifier(required=True)
    product_id = Identifier(required=True)


@marketplace.command(part_of="Seller")
class DeleteProduct:
    seller_id = Identifier(required=True)
    product_id = Identifier(required=True)


@marketplace.command_handler(part_of=Seller)
class SellerCatalogueHandler:
    def _load(self, seller_id, product_id):
        seller = current_domain.repository_for(Seller).get(seller_id)
        product = current_domain.repository_for(Product).get(product_id)
        return seller, product

    def _save(self, seller, product):
        current_domain.repository_for(Seller).add(seller)
        current_domain.repository_for(Product).add(product)

    @handle(AddProduct)
    def add_product(self, command):
        seller = current_domain.repository_for(Seller).get(command.seller_id)
        product = Product.create(
            name=ProductName(value=command.name),
            description=Description(value=command.description),
            price=Money.of(command.price),
            stock=command.stock,
        )
        seller.add_product(product)
        self._save(seller, product)

        logger.info("Product added", seller_id=str(seller.id), product_id=str(product.id), stock=product.stock)
        return str(product.id)

    @handle(ChangeProductPrice)
    def change_product_price(self, command):
        seller, product = self._load(command.seller_id, command.product_id)
        seller.change_product_price(product, Money.of(command.price))
        self._save(seller, product)

        logger.info("Product price changed", product_id=str(product.id), price=product.price.amount)

    @handle(ReplenishProduct)
    def replenish_product(self, command):
        seller, product = self._load(command.seller_id, command.product_id)
        seller.replenish_product(product, Quantity(value=command.quantity))
        self._save(seller, product)

    @handle(ReduceProductStock)
    def reduce_product_stock(self, command):
        seller, product = self._load(command.seller_id, command.product_id)
        seller.reduce_product_stock(product, Quantity(value=command.quantity))
        self._save(seller, product)

    @handle(UnlistProduct)
    def unlist_product(self, command):
        seller, product = self._load(command.seller_id, command.product_id)
        seller.unlist_product(product)
        self._save(seller, product)

    @handle(RelistProduct)
    def relist_product(self, command):
        seller, product = self._load(command.seller_id, command.product_id)
        seller.relist_product(product)
        self._save(seller, product)

    @handle(DeleteProduct)
    def delete_product(self, command):
        seller, product = self._load(command.seller_id, command.product_id)
        seller.delete_product(product)
        self._save(seller, product)

        logger.info("Product deleted", seller_id=str(seller.id), product_id=str(product.id))
