from rest_framework import status
from rest_framework.decorators import api_view
from drf_spectacular.utils import extend_schema

from apps.inventory.services import ProductNotFoundError
from apps.realtime.broadcaster import get_broadcaster
from config.responses import success_response, error_response
from .serializers import CartSerializer, AddToCartSerializer, UpdateQuantitySerializer
from .services import (
    cart_state,
    add_item,
    update_item_quantity,
    remove_item,
    clear_cart,
    CartItemNotFoundError,
    CartServiceError,
)


@extend_schema(
    methods=['GET'],
    responses={200: CartSerializer},
    description="Get the current user's cart with totals and checksum.",
    tags=['cart'],
)
@extend_schema(
    methods=['POST'],
    request=AddToCartSerializer,
    responses={201: CartSerializer},
    description="Add a product to the cart. An existing line is incremented.",
    tags=['cart'],
)
@extend_schema(
    methods=['DELETE'],
    responses={200: CartSerializer},
    description="Remove every line from the cart.",
    tags=['cart'],
)
@api_view(['GET', 'POST', 'DELETE'])
def cart(request):
    """Read, add to or clear the current user's cart."""
    if request.method == 'GET':
        return success_response(cart_state(user=request.user))

    if request.method == 'DELETE':
        clear_cart(user=request.user, broadcaster=get_broadcaster())
        return success_response(cart_state(user=request.user), message='Cart cleared')

    serializer = AddToCartSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        add_item(
            user=request.user,
            product_id=serializer.validated_data['product_id'],
            quantity=serializer.validated_data['quantity'],
            broadcaster=get_broadcaster(),
        )
    except ProductNotFoundError as e:
        return error_response(str(e), status.HTTP_404_NOT_FOUND)
    except CartServiceError as e:
        return error_response(str(e), status.HTTP_400_BAD_REQUEST)

    return success_response(
        cart_state(user=request.user),
        status_code=status.HTTP_201_CREATED,
        message='Item added to cart',
    )


@extend_schema(
    methods=['PATCH'],
    request=UpdateQuantitySerializer,
    responses={200: CartSerializer},
    description="Set a line's quantity. Zero removes the line.",
    tags=['cart'],
)
@extend_schema(
    methods=['DELETE'],
    responses={200: CartSerializer},
    description="Remove a product's line from the cart.",
    tags=['cart'],
)
@api_view(['PATCH', 'DELETE'])
def cart_item(request, product_id):
    """Update or remove one cart line."""
    try:
        if request.method == 'DELETE':
            remove_item(user=request.user, product_id=product_id, broadcaster=get_broadcaster())
            message = 'Item removed from cart'
        else:
            serializer = UpdateQuantitySerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            update_item_quantity(
                user=request.user,
                product_id=product_id,
                quantity=serializer.validated_data['quantity'],
                broadcaster=get_broadcaster(),
            )
            message = 'Cart updated'
    except CartItemNotFoundError as e:
        return error_response(str(e), status.HTTP_404_NOT_FOUND)
    except CartServiceError as e:
        return error_response(str(e), status.HTTP_400_BAD_REQUEST)

    return success_response(cart_state(user=request.user), message=message)
