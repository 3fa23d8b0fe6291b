"""
Directory Routers

Browsing and management endpoints for cart pods (``/cartpods``) and food
carts (``/foodcarts``). Browsing is public; changes need a session token.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request, status

from cartpod.common.auth.middleware import get_current_user, require_role
from cartpod.common.auth.user import AuthenticatedUser, UserRole
from cartpod.directory.repository import DirectoryRepository
from cartpod.directory.schemas import (
    CartPodCreate,
    CartPodUpdate,
    FoodCartCreate,
    FoodCartUpdate,
    PodFoodCartCreate,
    ReviewCreate
)

cart_pod_router = APIRouter(prefix="/cartpods", tags=["cartpods"])
food_cart_router = APIRouter(prefix="/foodcarts", tags=["foodcarts"])


def get_directory(request: Request) -> DirectoryRepository:
    return request.app.state.directory


def _cart_fields(payload) -> Dict[str, Any]:
    return {
        "name": payload.name,
        "location": payload.location.coordinates if payload.location else None,
        "pod_location_image": payload.podLocationImage,
        "cart_image": payload.cartImage,
        "menu_images": payload.menuImages,
    }


# Cart pods

@cart_pod_router.get("")
async def list_cart_pods(directory: DirectoryRepository = Depends(get_directory)) -> List[Dict[str, Any]]:
    return await directory.list_pods()


@cart_pod_router.get("/near/{longitude}/{latitude}/{max_distance}")
async def cart_pods_near(
    longitude: float,
    latitude: float,
    max_distance: float,
    directory: DirectoryRepository = Depends(get_directory)
) -> List[Dict[str, Any]]:
    """Pods within ``max_distance`` kilometres, nearest first."""
    return await directory.pods_near(longitude, latitude, max_distance)


@cart_pod_router.get("/{pod_id}")
async def get_cart_pod(pod_id: str, directory: DirectoryRepository = Depends(get_directory)) -> Dict[str, Any]:
    return await directory.get_pod(pod_id)


@cart_pod_router.post("", status_code=status.HTTP_201_CREATED)
async def create_cart_pod(
    payload: CartPodCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    directory: DirectoryRepository = Depends(get_directory)
) -> Dict[str, Any]:
    return await directory.create_pod(payload.name, payload.location.coordinates, payload.arrangementImage)


@cart_pod_router.put("/{pod_id}")
async def update_cart_pod(
    pod_id: str,
    payload: CartPodUpdate,
    current_user: AuthenticatedUser = Depends(require_role(UserRole.ADMIN)),
    directory: DirectoryRepository = Depends(get_directory)
) -> Dict[str, Any]:
    return await directory.update_pod(pod_id, {
        "name": payload.name,
        "location": payload.location.coordinates if payload.location else None,
        "arrangement_image": payload.arrangementImage,
    })


@cart_pod_router.delete("/{pod_id}")
async def delete_cart_pod(
    pod_id: str,
    current_user: AuthenticatedUser = Depends(require_role(UserRole.ADMIN)),
    directory: DirectoryRepository = Depends(get_directory)
) -> Dict[str, str]:
    await directory.delete_pod(pod_id)
    return {"message": "Cart pod deleted successfully"}


@cart_pod_router.post("/{pod_id}/foodcarts", status_code=status.HTTP_201_CREATED)
async def add_food_cart_to_pod(
    pod_id: str,
    payload: PodFoodCartCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    directory: DirectoryRepository = Depends(get_directory)
) -> Dict[str, Any]:
    return await directory.create_cart(pod_id, current_user.id, _cart_fields(payload))


# Food carts

@food_cart_router.get("")
async def list_food_carts(directory: DirectoryRepository = Depends(get_directory)) -> List[Dict[str, Any]]:
    return await directory.list_carts()


@food_cart_router.get("/near/{longitude}/{latitude}/{max_distance}")
async def food_carts_near(
    longitude: float,
    latitude: float,
    max_distance: float,
    directory: DirectoryRepository = Depends(get_directory)
) -> List[Dict[str, Any]]:
    return await directory.carts_near(longitude, latitude, max_distance)


@food_cart_router.get("/cartpod/{pod_id}")
async def food_carts_for_pod(pod_id: str, directory: DirectoryRepository = Depends(get_directory)) -> List[Dict[str, Any]]:
    return await directory.carts_for_pod(pod_id)


@food_cart_router.get("/{cart_id}")
async def get_food_cart(cart_id: str, directory: DirectoryRepository = Depends(get_directory)) -> Dict[str, Any]:
    return await directory.get_cart(cart_id)


@food_cart_router.post("", status_code=status.HTTP_201_CREATED)
async def create_food_cart(
    payload: FoodCartCreate,
    current_user: AuthenticatedUser = Depends(require_role(UserRole.OWNER, UserRole.ADMIN)),
    directory: DirectoryRepository = Depends(get_directory)
) -> Dict[str, Any]:
    return await directory.create_cart(payload.cartPod, current_user.id, _cart_fields(payload))


@food_cart_router.put("/{cart_id}")
async def update_food_cart(
    cart_id: str,
    payload: FoodCartUpdate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    directory: DirectoryRepository = Depends(get_directory)
) -> Dict[str, Any]:
    """Owners may edit their own carts; admins may edit any."""
    return await directory.update_cart(current_user, cart_id, _cart_fields(payload))


@food_cart_router.delete("/{cart_id}")
async def delete_food_cart(
    cart_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    directory: DirectoryRepository = Depends(get_directory)
) -> Dict[str, str]:
    await directory.delete_cart(current_user, cart_id)
    return {"message": "Food cart deleted successfully"}


@food_cart_router.post("/{cart_id}/reviews", status_code=status.HTTP_201_CREATED)
async def add_review(
    cart_id: str,
    payload: ReviewCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    directory: DirectoryRepository = Depends(get_directory)
) -> Dict[str, Any]:
    return await directory.add_review(cart_id, current_user.user.name, payload.rating, payload.comment)
