"""
Directory Repository

Storage and lookup of cart pods, food carts and reviews. Every method returns
plain dictionaries in the wire format, built while the session is still open.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cartpod.common.auth.exceptions import ForbiddenError
from cartpod.common.auth.user import AuthenticatedUser
from cartpod.common.exceptions import NotFoundError, ValidationError
from cartpod.common.logger import app_logger
from cartpod.common.utils import isoformat
from cartpod.database.init_db import Database
from cartpod.database.models import CartPodRecord, FoodCartRecord, ReviewRecord
from cartpod.directory.geo import haversine_km, validate_coordinates

logger = app_logger.getChild("directory.repository")


def _location(record) -> Dict[str, Any]:
    return {"type": "Point", "coordinates": [record.longitude, record.latitude]}


def review_to_dict(review: ReviewRecord) -> Dict[str, Any]:
    return {
        "id": review.id,
        "rating": review.rating,
        "comment": review.comment,
        "user": review.user,
        "createdAt": isoformat(review.created_at),
    }


def food_cart_to_dict(cart: FoodCartRecord, include_pod: bool = True) -> Dict[str, Any]:
    data = {
        "id": cart.id,
        "name": cart.name,
        "location": _location(cart),
        "cartPod": cart.cart_pod_id,
        "owner": None,
        "podLocationImage": cart.pod_location_image,
        "cartImage": cart.cart_image,
        "menuImages": list(cart.menu_images or []),
        "reviews": [review_to_dict(review) for review in cart.reviews],
        "averageRating": cart.average_rating,
        "createdAt": isoformat(cart.created_at),
        "updatedAt": isoformat(cart.updated_at),
    }
    if include_pod and cart.cart_pod is not None:
        data["cartPod"] = {
            "id": cart.cart_pod.id,
            "name": cart.cart_pod.name,
            "location": _location(cart.cart_pod),
        }
    if cart.owner is not None:
        data["owner"] = {"id": cart.owner.id, "name": cart.owner.name, "email": cart.owner.email}
    return data


def cart_pod_to_dict(pod: CartPodRecord) -> Dict[str, Any]:
    return {
        "id": pod.id,
        "name": pod.name,
        "location": _location(pod),
        "arrangementImage": pod.arrangement_image,
        "foodCarts": [food_cart_to_dict(cart, include_pod=False) for cart in pod.food_carts],
        "createdAt": isoformat(pod.created_at),
        "updatedAt": isoformat(pod.updated_at),
    }


def _nearest(records: List[Any], longitude: float, latitude: float, max_km: float) -> List[Any]:
    """Records within ``max_km`` of the origin, nearest first, paired with their distance."""
    try:
        validate_coordinates(longitude, latitude)
    except ValueError as e:
        raise ValidationError(str(e), {"coordinates": str(e)})
    if max_km < 0:
        raise ValidationError("Distance must not be negative", {"maxDistance": "must be >= 0"})

    origin = (longitude, latitude)
    in_range = []
    for record in records:
        distance = haversine_km(origin, (record.longitude, record.latitude))
        if distance <= max_km:
            in_range.append((distance, record))
    in_range.sort(key=lambda pair: pair[0])
    return in_range


class DirectoryRepository:
    """
    Repository for cart pods and food carts.

    Args:
        database: The database to read and write
        default_image_url: Used for food cart images that were not supplied
    """

    def __init__(self, database: Database, default_image_url: str):
        self.database = database
        self.default_image_url = default_image_url

    # Cart pods

    async def list_pods(self) -> List[Dict[str, Any]]:
        async with self.database.session() as session:
            result = await session.execute(select(CartPodRecord).order_by(CartPodRecord.created_at))
            return [cart_pod_to_dict(pod) for pod in result.scalars()]

    async def get_pod(self, pod_id: str) -> Dict[str, Any]:
        async with self.database.session() as session:
            return cart_pod_to_dict(await self._pod(session, pod_id))

    async def create_pod(self, name: str, location: List[float], arrangement_image: Optional[str] = None) -> Dict[str, Any]:
        pod = CartPodRecord(
            name=name,
            longitude=location[0],
            latitude=location[1],
            arrangement_image=arrangement_image,
            food_carts=[],
        )
        async with self.database.session() as session:
            session.add(pod)
            await session.flush()
            await session.refresh(pod)
            data = cart_pod_to_dict(pod)

        logger.info(f"Created cart pod {data['id']}")
        return data

    async def update_pod(self, pod_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        async with self.database.session() as session:
            pod = await self._pod(session, pod_id)
            if fields.get("location") is not None:
                pod.longitude, pod.latitude = fields["location"]
            pod.update({key: value for key, value in fields.items() if value is not None and key != "location"})
            await session.flush()
            await session.refresh(pod)
            return cart_pod_to_dict(pod)

    async def delete_pod(self, pod_id: str) -> None:
        """Delete a pod together with its food carts."""
        async with self.database.session() as session:
            pod = await self._pod(session, pod_id)
            await session.delete(pod)
        logger.info(f"Deleted cart pod {pod_id}")

    async def pods_near(self, longitude: float, latitude: float, max_km: float) -> List[Dict[str, Any]]:
        async with self.database.session() as session:
            result = await session.execute(select(CartPodRecord))
            nearby = _nearest(list(result.scalars()), longitude, latitude, max_km)
            return [dict(cart_pod_to_dict(pod), distanceKm=round(distance, 3)) for distance, pod in nearby]

    # Food carts

    async def list_carts(self) -> List[Dict[str, Any]]:
        async with self.database.session() as session:
            result = await session.execute(select(FoodCartRecord).order_by(FoodCartRecord.created_at))
            return [food_cart_to_dict(cart) for cart in result.scalars()]

    async def get_cart(self, cart_id: str) -> Dict[str, Any]:
        async with self.database.session() as session:
            return food_cart_to_dict(await self._cart(session, cart_id))

    async def carts_for_pod(self, pod_id: str) -> List[Dict[str, Any]]:
        async with self.database.session() as session:
            result = await session.execute(
                select(FoodCartRecord)
                .where(FoodCartRecord.cart_pod_id == pod_id)
                .order_by(FoodCartRecord.created_at)
            )
            return [food_cart_to_dict(cart, include_pod=False) for cart in result.scalars()]

    async def create_cart(self, pod_id: str, owner_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Add a food cart to a pod.

        Raises:
            NotFoundError: If the pod does not exist
        """
        async with self.database.session() as session:
            await self._pod(session, pod_id)
            longitude, latitude = fields["location"]
            cart = FoodCartRecord(
                name=fields["name"],
                longitude=longitude,
                latitude=latitude,
                cart_pod_id=pod_id,
                owner_id=owner_id,
                pod_location_image=fields.get("pod_location_image") or self.default_image_url,
                cart_image=fields.get("cart_image") or self.default_image_url,
                menu_images=fields.get("menu_images") or [self.default_image_url],
                reviews=[],
            )
            session.add(cart)
            await session.flush()
            await session.refresh(cart)
            data = food_cart_to_dict(cart)

        logger.info(f"User {owner_id} created food cart {data['id']} in pod {pod_id}")
        return data

    async def update_cart(self, actor: AuthenticatedUser, cart_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update a food cart owned by ``actor`` (any cart for admins).

        Raises:
            NotFoundError: If the cart does not exist
            ForbiddenError: If ``actor`` may not manage it
        """
        async with self.database.session() as session:
            cart = await self._cart(session, cart_id)
            self._check_owner(actor, cart)

            if fields.get("location") is not None:
                cart.longitude, cart.latitude = fields["location"]
            cart.update({key: value for key, value in fields.items() if value is not None and key != "location"})
            await session.flush()
            await session.refresh(cart)
            return food_cart_to_dict(cart)

    async def delete_cart(self, actor: AuthenticatedUser, cart_id: str) -> None:
        async with self.database.session() as session:
            cart = await self._cart(session, cart_id)
            self._check_owner(actor, cart)
            await session.delete(cart)
        logger.info(f"User {actor.id} deleted food cart {cart_id}")

    async def add_review(self, cart_id: str, reviewer: str, rating: int, comment: str) -> Dict[str, Any]:
        """Record a review and recompute the cart's average rating."""
        async with self.database.session() as session:
            cart = await self._cart(session, cart_id)
            review = ReviewRecord(rating=rating, comment=comment, user=reviewer)
            cart.reviews.append(review)
            cart.average_rating = sum(r.rating for r in cart.reviews) / len(cart.reviews)
            await session.flush()
            data = review_to_dict(review)

        logger.info(f"Review added to food cart {cart_id}")
        return data

    async def carts_near(self, longitude: float, latitude: float, max_km: float) -> List[Dict[str, Any]]:
        async with self.database.session() as session:
            result = await session.execute(select(FoodCartRecord))
            nearby = _nearest(list(result.scalars()), longitude, latitude, max_km)
            return [dict(food_cart_to_dict(cart), distanceKm=round(distance, 3)) for distance, cart in nearby]

    @staticmethod
    def _check_owner(actor: AuthenticatedUser, cart: FoodCartRecord) -> None:
        if not actor.can_manage(cart.owner_id):
            logger.warning(f"User {actor.id} denied access to food cart {cart.id}")
            raise ForbiddenError("Not authorized")

    @staticmethod
    async def _pod(session: AsyncSession, pod_id: str) -> CartPodRecord:
        pod = await session.get(CartPodRecord, pod_id)
        if pod is None:
            raise NotFoundError("Cart pod", pod_id)
        return pod

    @staticmethod
    async def _cart(session: AsyncSession, cart_id: str) -> FoodCartRecord:
        cart = await session.get(FoodCartRecord, cart_id)
        if cart is None:
            raise NotFoundError("Food cart", cart_id)
        return cart
