import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('academics', '0001_initial'),
        ('certificates', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='BonafideRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField(default=django.utils.timezone.localdate)),
                ('type', models.CharField(max_length=100)),
                ('sub_type', models.CharField(blank=True, default='', max_length=150)),
                ('reason', models.TextField()),
                ('status', models.CharField(choices=[('Pending Tutor Approval', 'Pending Tutor Approval'), ('Pending HOD Approval', 'Pending HOD Approval'), ('Pending Admin Approval', 'Pending Admin Approval'), ('Pending Principal Approval', 'Pending Principal Approval'), ('Approved', 'Approved'), ('Returned by Tutor', 'Returned by Tutor'), ('Returned by HOD', 'Returned by HOD'), ('Returned by Admin', 'Returned by Admin'), ('Returned by Principal', 'Returned by Principal')], db_index=True, default='Pending Tutor Approval', max_length=32)),
                ('return_reason', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bonafide_requests', to='academics.studentprofile')),
                ('template', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='requests', to='certificates.certificatetemplate')),
            ],
            options={'ordering': ('-created_at',)},
        ),
        migrations.CreateModel(
            name='CertificateIssue',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('issued_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('remarks', models.TextField(blank=True)),
                ('workflow_version', models.PositiveSmallIntegerField(default=1)),
                ('issued_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='issued_certificates', to=settings.AUTH_USER_MODEL)),
                ('request', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='issue', to='bonafide.bonafiderequest')),
            ],
            options={'ordering': ('-issued_at',)},
        ),
    ]
