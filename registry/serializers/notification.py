from rest_framework import serializers

from registry.serializers.common import CleanCharField


class MotherSerializer(serializers.Serializer):
    age = serializers.IntegerField(min_value=10, max_value=70)
    married = serializers.BooleanField(required=False, default=False)
    parity = CleanCharField(required=False, allow_blank=True, max_length=50)
    outcome = CleanCharField(required=False, allow_blank=True, max_length=100)
    typeOfPregnancy = CleanCharField(required=False, allow_blank=True, max_length=100)
    attendedAntenatal = CleanCharField(required=False, allow_blank=True, max_length=50)
    placeOfDelivery = CleanCharField(required=False, allow_blank=True, max_length=100)
    facilityLevelOfCare = CleanCharField(required=False, allow_blank=True, max_length=100)
    typeOfDelivery = CleanCharField(required=False, allow_blank=True, max_length=100)
    periodOfDeath = CleanCharField(required=False, allow_blank=True, max_length=100)
    perinatalCause = CleanCharField(required=False, allow_blank=True, max_length=255)
    maternalCondition = CleanCharField(required=False, allow_blank=True, max_length=255)
    conditions = serializers.ListField(child=CleanCharField(max_length=255), required=False)


class BabySerializer(serializers.Serializer):
    dateOfDeath = serializers.DateField(required=False, allow_null=True)
    timeOfDeath = CleanCharField(required=False, allow_blank=True, max_length=20)
    gestationWeeks = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=45)
    outcome = CleanCharField(max_length=100)
    apgarScore1min = CleanCharField(required=False, allow_blank=True, max_length=10)
    apgarScore5min = CleanCharField(required=False, allow_blank=True, max_length=10)
    apgarScore10min = CleanCharField(required=False, allow_blank=True, max_length=10)
    ageAtDeathDays = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    birthWeight = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=10000)
    sex = CleanCharField(max_length=20)


class NotificationCreateSerializer(serializers.Serializer):
    facilityName = CleanCharField(max_length=255)
    mflCode = CleanCharField(required=False, allow_blank=True, max_length=50)
    dateOfNotification = serializers.DateField()
    locality = CleanCharField(required=False, allow_blank=True, max_length=255)
    county = CleanCharField(required=False, allow_blank=True, max_length=255)
    subCounty = CleanCharField(required=False, allow_blank=True, max_length=255)
    levelOfCare = CleanCharField(required=False, allow_blank=True, max_length=100)
    managingAuthority = CleanCharField(required=False, allow_blank=True, max_length=100)
    locationId = serializers.IntegerField(required=False, allow_null=True)
    mother = MotherSerializer()
    babies = BabySerializer(many=True, allow_empty=False)


class ReportQuerySerializer(serializers.Serializer):
    startDate = serializers.DateField(required=False)
    endDate = serializers.DateField(required=False)
    month = serializers.CharField(required=False)

    def validate(self, attrs):
        start, end = attrs.get('startDate'), attrs.get('endDate')
        if start and end and start > end:
            raise serializers.ValidationError({'endDate': 'endDate must not be before startDate'})
        return attrs


class NotificationListQuerySerializer(ReportQuerySerializer):
    locationId = serializers.IntegerField(required=False, min_value=1)


class BabyListQuerySerializer(serializers.Serializer):
    notificationId = serializers.IntegerField(required=False, min_value=1)
    outcome = serializers.CharField(required=False, allow_blank=True)
