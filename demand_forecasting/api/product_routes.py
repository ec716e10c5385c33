"""
Routes for the product catalog.
"""
from flask import Blueprint, jsonify

from ._helpers import get_services, json_body

product_bp = Blueprint('products', __name__, url_prefix='/products')


@product_bp.route('', methods=['GET'])
def list_products():
    products = get_services().products.list_products()
    return jsonify({'products': [product.to_dict() for product in products]})


@product_bp.route('/<product_id>', methods=['GET'])
def get_product(product_id):
    product = get_services().products.get_product(product_id)
    return jsonify({'product': product.to_dict()})


@product_bp.route('', methods=['POST'])
def create_product():
    product = get_services().products.create_product(json_body())
    return jsonify({'message': 'Product created successfully', 'product': product.to_dict()}), 201


@product_bp.route('/<product_id>', methods=['PUT'])
def update_product(product_id):
    product = get_services().products.update_product(product_id, json_body())
    return jsonify({'message': 'Product updated successfully', 'product': product.to_dict()})


@product_bp.route('/<product_id>', methods=['DELETE'])
def delete_product(product_id):
    get_services().products.delete_product(product_id)
    return jsonify({'message': 'Product deleted successfully'})
