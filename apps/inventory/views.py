from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.accounts.permissions import IsAdmin
from apps.realtime.broadcaster import get_broadcaster
from config.responses import success_response, error_response
from .serializers import InventoryItemSerializer, StockUpdateSerializer
from .services import (
    list_inventory,
    low_stock_threshold,
    update_stock,
    ProductNotFoundError,
    InventoryServiceError,
)


@extend_schema(
    parameters=[
        OpenApiParameter(name='low_stock', type=bool, description='Only products at or below the threshold'),
        OpenApiParameter(name='threshold', type=int, description='Low stock threshold (default from settings)'),
    ],
    responses={200: InventoryItemSerializer(many=True)},
    description="List inventory ordered by stock level.",
    tags=['inventory'],
)
@api_view(['GET'])
@permission_classes([IsAdmin])
def inventory_list(request):
    """List products with their stock."""
    try:
        threshold = int(request.query_params.get('threshold', low_stock_threshold()))
    except ValueError:
        return error_response('threshold must be an integer', status.HTTP_400_BAD_REQUEST)

    low_stock_only = request.query_params.get('low_stock', 'false').lower() == 'true'
    products = list_inventory(low_stock_only=low_stock_only, threshold=threshold)
    items = InventoryItemSerializer(products, many=True).data

    return success_response({
        'items': items,
        'count': len(items),
        'low_stock_count': sum(1 for product in products if product.stock <= threshold),
    })


@extend_schema(
    request=StockUpdateSerializer,
    responses={200: InventoryItemSerializer},
    description="Set, add to or subtract from a product's stock. Publishes stock events.",
    tags=['inventory'],
)
@api_view(['PATCH', 'PUT'])
@permission_classes([IsAdmin])
def update_product_stock(request, product_id):
    """Update one product's stock."""
    serializer = StockUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        product = update_stock(
            product_id=product_id,
            stock=serializer.validated_data['stock'],
            adjustment_type=serializer.validated_data['adjustment_type'],
            broadcaster=get_broadcaster(),
        )
    except ProductNotFoundError as e:
        return error_response(str(e), status.HTTP_404_NOT_FOUND)
    except InventoryServiceError as e:
        return error_response(str(e), status.HTTP_400_BAD_REQUEST)

    return success_response(
        InventoryItemSerializer(product).data,
        message='Stock updated successfully',
    )
