from rest_framework import serializers


class ServerInfoSerializer(serializers.Serializer):
    app_name = serializers.CharField()
    version = serializers.CharField()
    debug = serializers.BooleanField()
    server_time = serializers.DateTimeField()
    max_item_quantity = serializers.IntegerField()
