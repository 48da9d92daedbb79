from rest_framework import serializers

from .exceptions import ObjectNotFound
from .pipelines import DEFAULT_FRAME_COUNT, DEFAULT_THUMBNAIL_TIMESTAMP
from .storage import key_for


class SourceJobSerializer(serializers.Serializer):
    source_path = serializers.CharField()
    owner_id = serializers.CharField()

    def validate_source_path(self, value):
        """
        Sources are referenced by canonical object path (/objects/<key>).
        """
        try:
            key_for(value)
        except ObjectNotFound:
            raise serializers.ValidationError("Expected an object path like /objects/<key>.")
        return value


class ThumbnailJobSerializer(SourceJobSerializer):
    timestamp = serializers.FloatField(min_value=0, required=False, default=DEFAULT_THUMBNAIL_TIMESTAMP)


class TimestampThumbnailJobSerializer(SourceJobSerializer):
    timestamp = serializers.FloatField(min_value=0)


class FrameBatchJobSerializer(SourceJobSerializer):
    frame_count = serializers.IntegerField(min_value=1, required=False, default=DEFAULT_FRAME_COUNT)


class ManifestCheckSerializer(serializers.Serializer):
    manifest_path = serializers.CharField()


class HlsResultSerializer(serializers.Serializer):
    manifest_path = serializers.CharField()
    segment_paths = serializers.ListField(child=serializers.CharField())
    duration = serializers.FloatField()


class ThumbnailResultSerializer(serializers.Serializer):
    thumbnail_path = serializers.CharField()
    timestamp = serializers.FloatField()


class FrameResultSerializer(ThumbnailResultSerializer):
    # Frames are served straight from their thumbnail object
    preview_path = serializers.CharField(source="thumbnail_path", read_only=True)


class FrameBatchResultSerializer(serializers.Serializer):
    frames = FrameResultSerializer(many=True)
