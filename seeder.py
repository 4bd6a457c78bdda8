import os
import django
import sys
import random
from datetime import timedelta

# Set up Django environment
sys.path.append(os.path.dirname(os.path.abspath(__file__)))
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'peerconnect_server.settings')
django.setup()

from django.utils import timezone

from chat_api.models import Message, Session
from groups_api.models import Group, GroupMember
from listeners_api.models import ListenerApplication
from meetings_api.models import Meeting
from resources_api.models import Resource
from topics_api.models import Topic
from user_mang.models.custom_user import Custom_User

SEED_PASSWORD = 'Passw0rd!'

TOPICS = [
    ('Anxiety', 'Worry, panic and everyday stress'),
    ('Depression', 'Low mood and loss of motivation'),
    ('Grief', 'Coping with loss'),
    ('Relationships', 'Family, friends and partners'),
    ('Work Stress', 'Burnout and pressure at work'),
    ('Sleep', 'Insomnia and rest'),
    ('Loneliness', 'Isolation and connection'),
]


def get_or_create_user(email, **defaults):
    user = Custom_User.objects.filter(email=email).first()
    if user is None:
        user = Custom_User.objects.create_user(email=email, password=SEED_PASSWORD, **defaults)
    return user


def seed():
    # --- TOPICS ---
    topics = []
    for name, description in TOPICS:
        topic, _ = Topic.objects.get_or_create(name=name, defaults={'description': description})
        topics.append(topic)

    # --- USERS ---
    admin = get_or_create_user(
        'admin@peerconnect.local', first_name='Platform', last_name='Admin',
        role=Custom_User.Role.ADMIN, email_verified=True, is_staff=True,
    )

    listeners = []
    for i in range(4):
        listener = get_or_create_user(
            f'listener{i}@peerconnect.local', first_name=f'Listener{i}', last_name='Peer',
            role=Custom_User.Role.LISTENER, is_approved=True, email_verified=True,
            status=Custom_User.Status.ONLINE, profile_completed=True,
            bio='Trained peer listener',
        )
        listener.topics.set(random.sample(topics, 3))
        listeners.append(listener)

    seekers = []
    for i in range(8):
        seeker = get_or_create_user(
            f'user{i}@peerconnect.local', first_name=f'User{i}', last_name='Seeker',
            email_verified=True, profile_completed=True,
        )
        seeker.topics.set(random.sample(topics, 3))
        seekers.append(seeker)

    # --- LISTENER APPLICATION ---
    application, created = ListenerApplication.objects.get_or_create(
        user=seekers[0],
        defaults={
            'bio': 'Volunteer on a university helpline',
            'experience': 'Two years of peer support',
            'motivation': 'I want to give back',
        },
    )
    if created:
        application.topics.set(topics[:3])

    # --- SESSIONS ---
    for seeker in seekers[1:5]:
        listener = random.choice(listeners)
        topic = listener.topics.first()
        session = Session.objects.create(
            seeker=seeker, listener=listener, topic=topic,
            start_time=timezone.now() - timedelta(hours=random.randint(1, 72)),
        )
        Message.objects.create(sender=seeker, receiver=listener, session=session, content='Hi, thanks for being here.')
        Message.objects.create(sender=listener, receiver=seeker, session=session, content='Of course. How are you feeling?')

    # --- GROUPS AND MEETINGS ---
    for topic, leader in zip(topics[:3], listeners):
        group, created = Group.objects.get_or_create(
            name=f'{topic.name} Circle',
            defaults={'description': f'Weekly peer support for {topic.name.lower()}', 'topic': topic, 'leader': leader},
        )
        if not created:
            continue
        GroupMember.objects.create(group=group, user=leader, role=GroupMember.Role.HEAD)
        for seeker in random.sample(seekers, 3):
            GroupMember.objects.get_or_create(group=group, user=seeker)
        Meeting.objects.create(
            group=group, title=f'{topic.name} check-in', created_by=leader,
            scheduled_start_time=timezone.now() + timedelta(days=random.randint(1, 7)),
        )

    # --- RESOURCES ---
    for i, topic in enumerate(topics):
        Resource.objects.get_or_create(
            title=f'{topic.name} starter guide',
            defaults={
                'description': f'Practical first steps for {topic.name.lower()}',
                'type': Resource.Type.PDF,
                'file_url': f'https://res.cloudinary.com/demo/raw/upload/peerconnect/resources/guide-{i}.pdf',
                'topic': topic,
                'uploaded_by': admin,
                'is_approved': True,
            },
        )

    print(f'Database seeded with {len(topics)} topics, {len(listeners)} listeners, {len(seekers)} users, sessions, groups, meetings and resources.')

if __name__ == "__main__":
    seed()
