from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from drf_spectacular.utils import extend_schema

from apps.accounts.permissions import IsAdmin, IsDeliveryDriver
from apps.inventory.services import InventoryServiceError
from apps.realtime.broadcaster import get_broadcaster
from config.responses import success_response, error_response
from .serializers import (
    OrderSerializer,
    CreateOrderSerializer,
    OrderStatusSerializer,
    AssignDriverSerializer,
    DeliveryStatusSerializer,
    DriverLocationSerializer,
    DeliveryLocationSerializer,
)
from .services import (
    list_orders,
    create_order_from_cart,
    update_order_status,
    assign_driver,
    update_delivery_status,
    post_driver_location,
    OrderNotFoundError,
    NotAssignedDriverError,
    OrderServiceError,
)


def _service_error(exc):
    """Map an order/inventory service error to its response."""
    if isinstance(exc, OrderNotFoundError):
        return error_response(str(exc), status.HTTP_404_NOT_FOUND)
    if isinstance(exc, NotAssignedDriverError):
        return error_response(str(exc), status.HTTP_403_FORBIDDEN)
    return error_response(str(exc), status.HTTP_400_BAD_REQUEST)


# =============================================================================
# Customer
# =============================================================================

@extend_schema(
    methods=['GET'],
    responses={200: OrderSerializer(many=True)},
    description="List the current user's orders, newest first.",
    tags=['orders'],
)
@extend_schema(
    methods=['POST'],
    request=CreateOrderSerializer,
    responses={201: OrderSerializer},
    description="Place an order from the current cart. Stock is decremented and the cart cleared.",
    tags=['orders'],
)
@api_view(['GET', 'POST'])
def orders(request):
    """List or place orders."""
    if request.method == 'GET':
        return success_response(OrderSerializer(list_orders(user=request.user), many=True).data)

    serializer = CreateOrderSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        order = create_order_from_cart(
            user=request.user,
            broadcaster=get_broadcaster(),
            **serializer.validated_data,
        )
    except (OrderServiceError, InventoryServiceError) as e:
        return _service_error(e)

    return success_response(
        OrderSerializer(order).data,
        status_code=status.HTTP_201_CREATED,
        message='Order created successfully',
    )


# =============================================================================
# Admin
# =============================================================================

@extend_schema(
    request=OrderStatusSerializer,
    responses={200: OrderSerializer},
    description="Set an order's status.",
    tags=['admin-orders'],
)
@api_view(['PATCH', 'PUT'])
@permission_classes([IsAdmin])
def admin_order_status(request, order_id):
    serializer = OrderStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        order = update_order_status(
            order_id=order_id,
            broadcaster=get_broadcaster(),
            **serializer.validated_data,
        )
    except OrderServiceError as e:
        return _service_error(e)

    return success_response(OrderSerializer(order).data, message='Order status updated successfully')


@extend_schema(
    request=AssignDriverSerializer,
    responses={200: OrderSerializer},
    description="Assign a delivery driver to an order.",
    tags=['admin-orders'],
)
@api_view(['POST'])
@permission_classes([IsAdmin])
def admin_assign_driver(request, order_id):
    serializer = AssignDriverSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        order = assign_driver(
            order_id=order_id,
            broadcaster=get_broadcaster(),
            **serializer.validated_data,
        )
    except OrderServiceError as e:
        return _service_error(e)

    return success_response(OrderSerializer(order).data, message='Order assigned successfully')


# =============================================================================
# Delivery
# =============================================================================

@extend_schema(
    request=DeliveryStatusSerializer,
    responses={200: OrderSerializer},
    description="Report delivery progress (in_transit or completed) on an assigned order.",
    tags=['delivery'],
)
@api_view(['POST'])
@permission_classes([IsDeliveryDriver])
def delivery_order_status(request, order_id):
    serializer = DeliveryStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        order = update_delivery_status(
            driver=request.user,
            order_id=order_id,
            broadcaster=get_broadcaster(),
            **serializer.validated_data,
        )
    except OrderServiceError as e:
        return _service_error(e)

    return success_response(OrderSerializer(order).data, message='Delivery status updated successfully')


@extend_schema(
    request=DriverLocationSerializer,
    responses={201: DeliveryLocationSerializer},
    description="Post the driver's current position.",
    tags=['delivery'],
)
@api_view(['POST'])
@permission_classes([IsDeliveryDriver])
def delivery_location(request):
    serializer = DriverLocationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        location = post_driver_location(
            driver=request.user,
            broadcaster=get_broadcaster(),
            **serializer.validated_data,
        )
    except OrderServiceError as e:
        return _service_error(e)

    return success_response(
        DeliveryLocationSerializer(location).data,
        status_code=status.HTTP_201_CREATED,
        message='Location updated successfully',
    )
