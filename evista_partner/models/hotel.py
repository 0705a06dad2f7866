"""
Hotel partner configuration models
"""
from pydantic import BaseModel, Field, AliasChoices
from typing import Optional, List, Dict


class Coordinates(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180, validation_alias=AliasChoices("lng", "long"))
    name: Optional[str] = None
    address: Optional[str] = None

    model_config = {"populate_by_name": True}


class RoutePrice(BaseModel):
    one_way: int = Field(..., ge=0)
    round_trip: int = Field(..., ge=0)


class RouteConfig(BaseModel):
    """Fixed-price route from the hotel"""
    id: str
    name: str
    short_name: str
    pickup: Coordinates
    destination: Coordinates
    estimated_duration: int = Field(..., description="Minutes")
    distance: int = Field(..., description="Kilometres")
    pricing: Dict[str, RoutePrice] = Field(default_factory=dict)


class VehicleClass(BaseModel):
    id: str
    name: str
    vehicles: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    # Backend car type; None when the class only exists on fixed-route tariffs
    car_type_id: Optional[int] = None
    price_multiplier: float = 1.0


class FleetVehicle(BaseModel):
    id: str
    name: str
    vehicle_class: str
    category: str
    capacity: int
    features: List[str] = Field(default_factory=list)
    available: bool = True


class ReturnLocation(BaseModel):
    value: str
    label: str
    lat: float
    lng: float
    address: Optional[str] = None
    same_as_pickup: bool = False


class RentalDuration(BaseModel):
    value: str
    label: str
    hours: int


class HotelContact(BaseModel):
    whatsapp: str
    email: Optional[str] = None
    phone: Optional[str] = None


class HotelConfig(BaseModel):
    """Static per-hotel configuration served to the booking site"""
    name: str
    slug: str
    contact: HotelContact
    location: Coordinates
    night_reservation_message: str = ""
    fleet: List[FleetVehicle] = Field(default_factory=list)
    vehicle_classes: List[VehicleClass] = Field(default_factory=list)
    routes: List[RouteConfig] = Field(default_factory=list)
    return_locations: List[ReturnLocation] = Field(default_factory=list)

    def route(self, route_id: str) -> Optional[RouteConfig]:
        for route in self.routes:
            if route.id == route_id:
                return route
        return None

    def vehicle_class(self, class_id: str) -> Optional[VehicleClass]:
        for vc in self.vehicle_classes:
            if vc.id == class_id:
                return vc
        return None

    def fleet_vehicle(self, vehicle_id: str) -> Optional[FleetVehicle]:
        for vehicle in self.fleet:
            if vehicle.id == vehicle_id:
                return vehicle
        return None

    def return_location(self, value: str) -> Optional[ReturnLocation]:
        for loc in self.return_locations:
            if loc.value == value:
                return loc
        return None
