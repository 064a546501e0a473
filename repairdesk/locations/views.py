from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from .models import Location
from .serializers import LocationSerializer


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def location_list(request):
    """List branches. Branches are maintained through the admin site."""
    queryset = Location.objects.all()

    is_active = request.query_params.get('is_active', None)
    if is_active is not None:
        queryset = queryset.filter(is_active=is_active.lower() == 'true')

    location_type = request.query_params.get('location_type', None)
    if location_type:
        queryset = queryset.filter(location_type=location_type)

    serializer = LocationSerializer(queryset, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def location_detail(request, pk):
    """Retrieve a branch"""
    location = get_object_or_404(Location, pk=pk)
    return Response(LocationSerializer(location).data)
