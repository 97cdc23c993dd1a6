from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .. import services
from ..models import User
from .serializers import UserCreateSerializer, UserSerializer


class AdminUserListCreateView(APIView):
    """List students and lecturers, or create one and send the welcome email."""

    permission_classes = [permissions.IsAdminUser]

    def get(self, request, *args, **kwargs):
        users = User.objects.filter(role__in=[User.Role.STUDENT, User.Role.LECTURER])
        return Response({"users": UserSerializer(users, many=True).data})

    def post(self, request, *args, **kwargs):
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = services.create_user(**serializer.validated_data)
        return Response({"user": UserSerializer(user).data}, status=status.HTTP_201_CREATED)


class AdminUserDetailView(generics.RetrieveAPIView):
    queryset = User.objects.all()
    serializer_class = UserSerializer
    permission_classes = [permissions.IsAdminUser]
